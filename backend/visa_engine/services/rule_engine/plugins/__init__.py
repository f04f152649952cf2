"""Per-category visa plugins."""

from .e1 import E1Plugin
from .generic import GenericVisaPlugin

__all__ = [
    "E1Plugin",
    "GenericVisaPlugin",
]
