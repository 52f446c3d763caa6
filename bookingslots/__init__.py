"""
bookingslots - availability engine for a multi-tenant appointment booking platform.
"""

__version__ = "0.1.0"
