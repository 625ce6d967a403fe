"""Binding accepted quotes into policies and managing them afterwards."""
