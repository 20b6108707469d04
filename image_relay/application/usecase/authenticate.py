"""Authenticate Use Case - Application Layer"""

import logging

from ...domain.repository.credential_verifier import CredentialVerifier

logger = logging.getLogger(__name__)


class AuthenticateUseCase:
    """Authenticate a username/password pair"""

    def __init__(self, verifier: CredentialVerifier):
        self._verifier = verifier

    def execute(self, username: str, password: str) -> bool:
        if not username or not password:
            return False
        valid = self._verifier.verify(username, password)
        if not valid:
            logger.info(f"Rejected login for user '{username}'")
        return valid
