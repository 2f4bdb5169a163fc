"""Inbound Digital Audit - worker package.

Provider adapters, metric builders and the audit pipeline tasks. Nothing here
depends on the HTTP layer except the shared settings and document models.
"""
