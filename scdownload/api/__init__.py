"""
SoundCloud API Layer.

This package handles all HTTP communication with SoundCloud and the
enumeration of items to download.
"""

from .client import SoundCloudClient
from .catalog import CatalogKind, CatalogResolver, CatalogSelection

__all__ = ["CatalogKind", "CatalogResolver", "CatalogSelection", "SoundCloudClient"]
