"""
This module manages the symmetric key that protects client-side session data.

It uses the `cryptography` library (Fernet) for two things:
- encrypting the local storage file that holds the session token and user snapshot;
- minting session tokens themselves, which are Fernet tokens wrapping a user id.
  Because Fernet tokens are authenticated and timestamped, a token can be checked
  for tampering and age without any server-side session table.

Security Note: the key file must be kept secret and must not be committed to
version control.
"""
# healthnet/encryption.py

import logging

from cryptography.fernet import Fernet

logger = logging.getLogger(__name__)


def write_key(key_file: str) -> bytes:
    """Generates a new Fernet key and saves it to `key_file`.

    Returns:
        bytes: The generated key.
    """
    key = Fernet.generate_key()
    with open(key_file, "wb") as f:
        f.write(key)
    return key


def load_key(key_file: str) -> bytes:
    """Loads the Fernet key from `key_file`."""
    with open(key_file, "rb") as f:
        return f.read()


def get_encryptor(key_file: str) -> Fernet:
    """Returns a Fernet instance for `key_file`, generating the key on first use."""
    try:
        key = load_key(key_file)
    except FileNotFoundError:
        logger.warning("Encryption key %s not found. Generating a new one.", key_file)
        key = write_key(key_file)
    return Fernet(key)
