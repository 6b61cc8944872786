"""
Persistent key-value string store.
A JSON object on disk mapping string keys to string values.
"""

import json
import os
import logging
import threading
from typing import Dict, Optional

from tasklist.core.errors import StorageError


class KeyValueStorage:
    """
    File-backed string store, read and written in full on every access
    """

    def __init__(self, path: str):
        """
        Initialize key-value storage

        Args:
            path: Path to the JSON file (created on first write)
        """
        self.logger = logging.getLogger(__name__)
        self.path = path
        self.lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to read storage file {self.path}: {e}")
            raise StorageError(f"Storage file is unreadable: {e}")

        if not isinstance(data, dict):
            raise StorageError("Storage file must contain a JSON object")
        return data

    def _write(self, data: Dict[str, str]):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        try:
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            self.logger.error(f"Failed to write storage file {self.path}: {e}")
            raise StorageError(f"Storage file is not writable: {e}")

    def get_item(self, key: str) -> Optional[str]:
        with self.lock:
            value = self._read().get(key)
        if value is not None and not isinstance(value, str):
            raise StorageError(f"Value for {key} is not a string")
        return value

    def set_item(self, key: str, value: str):
        with self.lock:
            data = self._read()
            data[key] = value
            self._write(data)
        self.logger.debug(f"Stored {len(value)} chars under {key}")

    def remove_item(self, key: str):
        with self.lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)
