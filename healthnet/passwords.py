"""
This module handles password credentials for HealthNet accounts.

Passwords are stored as a SHA-256 hash of a random per-user salt followed by the
password. New passwords must pass the strength check before they are hashed.
"""
# healthnet/passwords.py

import hashlib
import os


def hash_password(password: str, salt: str = None) -> tuple:
    """Hashes a password with a salt, generating a random salt if none is given.

    Returns:
        tuple: (password_hash, salt)
    """
    salt = salt or os.urandom(16).hex()
    password_hash = hashlib.sha256((salt + password).encode()).hexdigest()
    return password_hash, salt


def verify_password(password: str, password_hash: str, salt: str) -> bool:
    if not salt or not password_hash:
        return False
    return hash_password(password, salt)[0] == password_hash


def is_strong_password(password: str) -> bool:
    """Checks if a password meets the defined strength criteria."""
    if not password or len(password) < 8:
        return False
    has_upper = any(c.isupper() for c in password)
    has_lower = any(c.islower() for c in password)
    has_digit = any(c.isdigit() for c in password)
    has_special = any(not c.isalnum() for c in password)
    return has_upper and has_lower and has_digit and has_special
