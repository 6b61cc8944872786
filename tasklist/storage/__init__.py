"""
Persistence Module

- KeyValueStorage: JSON key-value file
- LocalAdapter / RemoteAdapter: persistence variants
- select_backend: one-time variant selection at startup
"""

from .kvstore import KeyValueStorage
from .adapters import (
    LocalAdapter, PersistenceAdapter, RemoteAdapter, StorageBackend, StorageMode, select_backend
)

__all__ = [
    'KeyValueStorage', 'LocalAdapter', 'PersistenceAdapter', 'RemoteAdapter',
    'StorageBackend', 'StorageMode', 'select_backend'
]
