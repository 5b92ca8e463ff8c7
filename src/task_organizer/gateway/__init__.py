"""
Gateway subsystem: the HTTP client for the task service, its offline stand-in,
and the wire-shape normalization both of them share.
"""
