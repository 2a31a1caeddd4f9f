"""
Centralized client initialization module.

This module provides lazy-loaded shared clients for the application.
"""
from src.utils.dynamo import CareStore, get_dynamo

# Initialize shared clients (lazy loading)
_store = None

def get_store() -> CareStore:
    """Get or create the pet care store."""
    global _store
    if _store is None:
        _store = CareStore(get_dynamo())
    return _store

__all__ = ["get_dynamo", "get_store"]
