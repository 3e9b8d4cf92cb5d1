"""
Core utilities shared across the country service: configuration, logging
setup and the access log sink.
"""
