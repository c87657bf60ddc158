"""Configuration store implementations."""

from .base import ConfigStore
from .http import HttpConfigStore
from .memory import MemoryConfigStore
from .sql import SqlConfigStore

__all__ = [
    "ConfigStore",
    "HttpConfigStore",
    "MemoryConfigStore",
    "SqlConfigStore",
]
