"""
Client-local persistent key-value storage.

The session manager keeps the session token and a snapshot of the signed-in user
here, under two fixed keys. Values are JSON-serialised and the whole file is
encrypted with the shared Fernet key, so it survives process restarts until the
keys are removed.
"""
# healthnet/storage.py

import json
import logging

from cryptography.fernet import InvalidToken

logger = logging.getLogger(__name__)

TOKEN_KEY = 'token'
USER_KEY = 'user'


class LocalStorage:
    """A small encrypted JSON file used like a browser's localStorage."""

    def __init__(self, path: str, encryptor):
        self.path = path
        self._encryptor = encryptor
        self._data = self._load_data()

    def _load_data(self) -> dict:
        """Loads and decrypts the storage file.

        Returns:
            dict: The stored items, or an empty dictionary if the file doesn't exist or is corrupt.
        """
        try:
            with open(self.path, 'r') as f:
                encrypted_data = f.read()
            if not encrypted_data:
                return {}
            decrypted_data = self._encryptor.decrypt(encrypted_data.encode()).decode()
            data = json.loads(decrypted_data)
            if not isinstance(data, dict):
                return {}
            return data
        except FileNotFoundError:
            return {}
        except (InvalidToken, json.JSONDecodeError) as e:
            logger.warning("Could not read local storage %s (%s). Starting empty.", self.path, e)
            return {}

    def _save_data(self):
        with open(self.path, 'w') as f:
            encrypted_data = self._encryptor.encrypt(json.dumps(self._data).encode())
            f.write(encrypted_data.decode())

    def get_item(self, key: str):
        return self._data.get(key)

    def set_item(self, key: str, value):
        self._data[key] = value
        self._save_data()

    def remove_item(self, key: str):
        if key in self._data:
            del self._data[key]
            self._save_data()

    def keys(self) -> list:
        return list(self._data.keys())
