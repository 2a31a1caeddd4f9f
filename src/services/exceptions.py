"""
Service-level exceptions.

This module contains exceptions that can be raised by the pet care services
and translated into responses by the Lambda handlers.
"""

class PetCareError(Exception):
    """Base exception for pet care service errors."""
    pass

class ValidationError(PetCareError, ValueError):
    """Raised when input data (dates, recurrence, required fields) is invalid."""
    pass

class PersistenceError(PetCareError):
    """Raised when the backing store rejects a read or write."""
    pass

class RecordNotFoundError(PetCareError):
    """Raised when a referenced pet, care event or reminder does not exist."""
    pass
