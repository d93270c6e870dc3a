"""
API Package
===========

FastAPI server exposing the catalog to remote order-entry clients.
"""
