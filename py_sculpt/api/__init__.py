"""
HTTP API for terrain sculpting sessions.
"""
