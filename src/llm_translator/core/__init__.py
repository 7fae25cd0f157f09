"""
Core components: configuration, logging, validation, rate limiting and the
translation client.
"""
