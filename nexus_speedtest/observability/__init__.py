"""
Environment lookups: caller geolocation and test server details.
"""
