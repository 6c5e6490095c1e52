"""
Side-channel collaborators: audit records and IP geolocation.
"""
