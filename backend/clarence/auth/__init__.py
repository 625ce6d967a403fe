"""
Authentication: phone verification sessions, token rotation/revocation,
login lockout and SMS rate limiting.
"""
