"""
Utility helpers.
"""

from .log import configure_logging

__all__ = ['configure_logging']
