"""
Media Storage Gateway

A multi-tenant HTTP gateway for storing, reading and deleting media objects
in blob storage, with per-tenant containers, remote read authorization,
upload-time metadata extraction and audit events.
"""

__version__ = "1.0.0"
