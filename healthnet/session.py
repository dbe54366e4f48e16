"""
This module provides the Session Manager for HealthNet.

It is responsible for:
- Registering users and checking credentials.
- Issuing session tokens and keeping the token plus a snapshot of the user in
  client-local persistent storage (`LocalStorage`), so a session survives a restart.
- Resolving the "current user" for every authenticated operation.
- Logging out, where the remote confirmation (token revocation) may fail without
  affecting the local sign-out.
- Issuing and redeeming single-use password reset codes.

Session tokens are Fernet tokens wrapping the user id. They are checked for
tampering and for age (`TOKEN_TTL_SECONDS`) on every resolution.
"""
# healthnet/session.py

from datetime import datetime, timedelta, timezone
import hashlib
import logging
import secrets

from cryptography.fernet import InvalidToken

from healthnet.errors import Conflict, NotFound, Unauthenticated, ValidationError
from healthnet.models import AFFILIATED_ROLES, User, public_user
from healthnet.passwords import hash_password, is_strong_password, verify_password
from healthnet.schemas import RegisterPayload, parse
from healthnet.storage import TOKEN_KEY, USER_KEY

logger = logging.getLogger(__name__)


class SessionManager:
    """Issues, stores and validates sessions against the entity store."""

    def __init__(self, store, storage, encryptor, integrity, settings):
        self._store = store
        self._storage = storage
        self._encryptor = encryptor
        self._integrity = integrity
        self._settings = settings
        self._revoked = set()
        self._reset_codes = {}

    # Registration and login

    def register(self, username, email, password, role, facility_id=None) -> dict:
        """Creates a user and opens a session for it.

        Raises:
            ValidationError: malformed fields, weak password, or an affiliation on a role that can't have one.
            Conflict: the username or email is already taken.
            NotFound: the given facility does not exist.

        Returns:
            dict: {"token": str, "user": dict}
        """
        payload = parse(RegisterPayload, dict(
            username=username, email=email, password=password, role=role, facility_id=facility_id,
        ))
        if not is_strong_password(payload.password):
            raise ValidationError(
                "Password must be at least 8 characters and contain upper and lower case letters, "
                "a digit and a symbol."
            )
        if payload.facility_id and payload.role not in AFFILIATED_ROLES:
            raise ValidationError(f"Role '{payload.role}' cannot be affiliated with a facility.")
        if payload.facility_id and self._store.get('facilities', payload.facility_id) is None:
            raise NotFound(f"Facility {payload.facility_id} not found.")
        if self._find_by_username(payload.username):
            raise Conflict(f"Username '{payload.username}' is already taken.")
        if self._find_by_email(payload.email):
            raise Conflict(f"Email '{payload.email}' is already registered.")

        password_hash, salt = hash_password(payload.password)
        user = User(
            payload.username, payload.email, payload.role, password_hash, salt,
            facility_id=payload.facility_id,
        )
        record = self._store.add('users', user)
        self._integrity.add_member(record)
        logger.info("Registered %s %s (%s)", payload.role, payload.username, record['id'])
        return self._open_session(record)

    def login(self, username, password) -> dict:
        """Checks credentials and opens a session.

        Raises:
            Unauthenticated: unknown username or wrong password.
        """
        user = self._find_by_username(username or '')
        if user is None or not verify_password(password or '', user.get('password_hash'), user.get('salt')):
            logger.warning("Failed login attempt for %s", username)
            raise Unauthenticated("Invalid username or password.")
        logger.info("User %s logged in", user['username'])
        return self._open_session(user)

    def _open_session(self, user: dict) -> dict:
        token = self._encryptor.encrypt(user['id'].encode()).decode()
        snapshot = public_user(user)
        self._storage.set_item(TOKEN_KEY, token)
        self._storage.set_item(USER_KEY, snapshot)
        return {"token": token, "user": snapshot}

    # Current session

    @property
    def token(self):
        return self._storage.get_item(TOKEN_KEY)

    def has_session(self) -> bool:
        return bool(self.token)

    def current_user(self) -> dict:
        """Resolves the live user record behind the stored session token.

        Raises:
            Unauthenticated: there is no session, or the token is invalid, expired,
                revoked, or refers to a user that no longer exists.
        """
        token = self.token
        if not token:
            raise Unauthenticated("You are not logged in.")
        user_id = self._verify_token(token)
        user = self._store.get('users', user_id)
        if user is None:
            logger.warning("Session refers to unknown user %s", user_id)
            raise Unauthenticated("Your session is no longer valid. Please log in again.")
        return user

    def _verify_token(self, token: str) -> str:
        if token in self._revoked:
            raise Unauthenticated("Your session has ended. Please log in again.")
        try:
            return self._encryptor.decrypt(token.encode(), ttl=self._settings.TOKEN_TTL_SECONDS).decode()
        except InvalidToken:
            logger.warning("Rejected an invalid or expired session token")
            raise Unauthenticated("Your session has expired. Please log in again.")

    def get_profile(self) -> dict:
        """Returns the current user and refreshes the stored snapshot."""
        user = public_user(self.current_user())
        self._storage.set_item(USER_KEY, user)
        return user

    def clear(self):
        """Removes the session token and user snapshot from local storage."""
        self._storage.remove_item(TOKEN_KEY)
        self._storage.remove_item(USER_KEY)

    def logout(self):
        """Signs out locally, even if the remote confirmation step fails."""
        token = self.token
        try:
            self._confirm_logout(token)
        except Unauthenticated as e:
            logger.warning("Logout confirmation failed: %s", e.message)
        finally:
            self.clear()

    def _confirm_logout(self, token):
        if not token:
            raise Unauthenticated("No session to end.")
        self._verify_token(token)
        self._revoked.add(token)

    # Password reset

    def request_password_reset(self, email) -> str:
        """Issues a 6-digit reset code for the account with `email`.

        Raises:
            NotFound: no account uses this email.
        """
        user = self._find_by_email(email or '')
        if user is None:
            raise NotFound("No account is registered with this email.")
        code = f"{secrets.randbelow(1000000):06d}"
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=self._settings.RESET_CODE_TTL_MINUTES)
        self._reset_codes[user['id']] = (self._hash_code(code), expires_at)
        logger.info("Password reset requested for %s", user['username'])
        return code

    def confirm_password_reset(self, email, code, new_password):
        """Sets a new password if `code` is the outstanding, unexpired code for `email`."""
        user = self._find_by_email(email or '')
        entry = self._reset_codes.get(user['id']) if user else None
        if entry is None:
            raise ValidationError("Invalid or expired reset code.")
        code_hash, expires_at = entry
        if datetime.now(timezone.utc) > expires_at:
            del self._reset_codes[user['id']]
            raise ValidationError("Invalid or expired reset code.")
        if not secrets.compare_digest(code_hash, self._hash_code(code or '')):
            raise ValidationError("Invalid or expired reset code.")
        if not is_strong_password(new_password):
            raise ValidationError(
                "Password must be at least 8 characters and contain upper and lower case letters, "
                "a digit and a symbol."
            )
        user['password_hash'], user['salt'] = hash_password(new_password)
        del self._reset_codes[user['id']]
        logger.info("Password reset completed for %s", user['username'])

    @staticmethod
    def _hash_code(code: str) -> str:
        return hashlib.sha256(code.encode()).hexdigest()

    # Lookups

    def _find_by_username(self, username: str):
        for user in self._store.all('users'):
            if user['username'] == username:
                return user
        return None

    def _find_by_email(self, email: str):
        email = email.strip().lower()
        for user in self._store.all('users'):
            if user['email'].lower() == email:
                return user
        return None
