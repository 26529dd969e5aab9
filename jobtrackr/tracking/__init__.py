"""Application tracking."""
from .application_service import ApplicationService

__all__ = ["ApplicationService"]
