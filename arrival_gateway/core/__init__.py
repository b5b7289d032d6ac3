"""
Gateway core: connection lifecycle.
"""
