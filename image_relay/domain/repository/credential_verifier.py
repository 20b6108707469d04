"""Credential Verifier Repository Interface - Domain Layer"""

from abc import ABC, abstractmethod


class CredentialVerifier(ABC):
    """Checks a username/password pair."""

    @abstractmethod
    def verify(self, username: str, password: str) -> bool:
        """Return True when the pair is valid.

        Implementations must not compare plain-text secrets.
        """
        pass
