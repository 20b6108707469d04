"""Bcrypt Credential Verifier - Infrastructure Layer"""

import logging
from typing import Dict, Iterable, Optional

import bcrypt

from ...domain.repository.credential_verifier import CredentialVerifier

logger = logging.getLogger(__name__)


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password for the auth.users configuration list."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


class BcryptCredentialVerifier(CredentialVerifier):
    """Verifies passwords against bcrypt hashes loaded from configuration.

    Unknown usernames are checked against a throwaway hash so both paths
    cost one bcrypt comparison.
    """

    def __init__(self, password_hashes: Dict[str, str], dummy_rounds: int = 12):
        """Initialize the verifier

        Args:
            password_hashes: {username: bcrypt_hash}
            dummy_rounds: Cost of the throwaway hash, match the stored hashes
        """
        self._hashes = {
            username: password_hash
            for username, password_hash in password_hashes.items()
            if username and password_hash
        }
        self._dummy_hash = bcrypt.hashpw(b"image-relay", bcrypt.gensalt(rounds=dummy_rounds))

    @classmethod
    def from_users(cls, users: Iterable) -> "BcryptCredentialVerifier":
        """Build from UserConfig entries."""
        return cls({user.username: user.password_hash for user in users})

    def verify(self, username: str, password: str) -> bool:
        stored: Optional[str] = self._hashes.get(username)
        candidate = password.encode("utf-8")

        if stored is None:
            bcrypt.checkpw(candidate, self._dummy_hash)
            return False

        try:
            return bcrypt.checkpw(candidate, stored.encode("utf-8"))
        except ValueError:
            logger.error(f"Stored password hash for user '{username}' is not a valid bcrypt hash")
            return False

    def __len__(self) -> int:
        return len(self._hashes)
