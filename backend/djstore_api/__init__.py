"""
DJ Store REST API.
"""
