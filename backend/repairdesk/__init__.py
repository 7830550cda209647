"""Application package for the repair-shop backend.

This package exposes the service, repository and model modules used by
the FastAPI application in `repairdesk.main`. Individual modules contain
the concrete implementations and documentation.
"""
