"""
Storage Layer.

This package handles all data persistence: the INI configuration file and
the per-item segment cache with its metadata records.
"""

from .cache import CacheGate, CacheRecord, CacheState
from .config_manager import ConfigManager

__all__ = ["CacheGate", "CacheRecord", "CacheState", "ConfigManager"]
