"""
Adapters layer - Collaborators backed by configuration and data files.
"""

from .booking_store import FileBookingStore
from .directory import ConfigBusinessDirectory

__all__ = ["ConfigBusinessDirectory", "FileBookingStore"]
