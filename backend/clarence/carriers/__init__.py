"""
Carrier integration: HTTP client, payload building, response
normalization, eligibility filtering and health probing.
"""
