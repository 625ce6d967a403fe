"""Quote request lifecycle and multi-carrier fan-out."""
