from __future__ import annotations

import logging
from typing import Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from lyricsify.errors import SecureStorageError

logger = logging.getLogger(__name__)

KEYCHAIN_SERVICE = "com.lyricsify.spotify"
KEYCHAIN_ACCOUNT = "spotify_token"


class TokenStore(Protocol):
    def load(self) -> str | None: ...

    def save(self, blob: str) -> None: ...

    def delete(self) -> None: ...


class KeyringTokenStore:
    """Opaque credential blob kept in the OS keychain."""

    def __init__(self, service: str = KEYCHAIN_SERVICE, account: str = KEYCHAIN_ACCOUNT):
        self.service, self.account = service, account

    def load(self) -> str | None:
        try:
            return keyring.get_password(self.service, self.account)
        except KeyringError as e:
            raise SecureStorageError(f"Failed to read token from keyring: {e}") from e

    def save(self, blob: str) -> None:
        try:
            keyring.set_password(self.service, self.account, blob)
        except KeyringError as e:
            raise SecureStorageError(f"Failed to write token to keyring: {e}") from e
        logger.info("Token saved to keyring")

    def delete(self) -> None:
        try:
            keyring.delete_password(self.service, self.account)
        except PasswordDeleteError:
            # already gone
            return
        except KeyringError as e:
            raise SecureStorageError(f"Failed to delete token from keyring: {e}") from e
        logger.info("Token cleared from keyring")
