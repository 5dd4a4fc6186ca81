"""
Login, refresh-token rotation, logout and password change.

An account is either signed out (no stored refresh-token digest) or holds
exactly one live refresh token. Login overwrites it, refresh swaps it with a
compare-and-swap against the presented token, logout clears it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from channel_accounts.models.account import Account
from channel_accounts.utils.exceptions import (
    AccountNotFound,
    InvalidCredentials,
    InvalidToken,
    TokenRevokedOrStale,
    Unauthenticated,
)
from channel_accounts.utils.security import dummy_verify, hash_password, needs_rehash, verify_password
from channel_accounts.utils.tokens import (
    TokenFault,
    TokenPair,
    hash_token,
    issue_token_pair,
    verify_refresh_token,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionResult:
    account: Account
    tokens: TokenPair


class SessionManager:
    def __init__(self, storage):
        self.storage = storage

    def login(self, identifier: str, password: str) -> SessionResult:
        account = self.storage.find_by_identifier(identifier)
        if account is None:
            dummy_verify(password)
            logger.info("login rejected: unknown identifier")
            raise AccountNotFound()
        if not verify_password(password, account.password_hash):
            logger.info("login rejected: bad password for account %s", account.id)
            raise InvalidCredentials()
        if needs_rehash(account.password_hash):
            # Work factor was raised since this hash was made
            self.storage.update(account.id, {"password_hash": hash_password(password)})

        tokens = issue_token_pair(account)
        if not self.storage.set_refresh_token_hash(account.id, hash_token(tokens.refresh_token)):
            # Deleted between lookup and write
            raise AccountNotFound()
        logger.info("account %s logged in", account.id)
        return SessionResult(account, tokens)

    def refresh(self, presented: str | None) -> SessionResult:
        if not presented:
            raise Unauthenticated()

        result = verify_refresh_token(presented)
        if not result.ok:
            logger.info("refresh rejected: %s", result.fault.value)
            if result.fault is TokenFault.EXPIRED:
                raise InvalidToken("Refresh token expired")
            raise InvalidToken("Invalid refresh token")

        account = self.storage.find_by_id(result.claims["sub"])
        if account is None:
            raise InvalidToken("Invalid refresh token")

        tokens = issue_token_pair(account)
        swapped = self.storage.swap_refresh_token_hash(
            account.id, hash_token(presented), hash_token(tokens.refresh_token)
        )
        if not swapped:
            logger.warning("stale or revoked refresh token presented for account %s", account.id)
            raise TokenRevokedOrStale()
        logger.info("refresh token rotated for account %s", account.id)
        return SessionResult(account, tokens)

    def logout(self, account_id: str) -> None:
        if not self.storage.set_refresh_token_hash(account_id, None):
            raise AccountNotFound()
        logger.info("account %s logged out", account_id)

    def change_password(self, account: Account, old_password: str, new_password: str) -> Account:
        if not verify_password(old_password, account.password_hash):
            raise InvalidCredentials("Invalid old password")
        updated = self.storage.update(account.id, {"password_hash": hash_password(new_password)})
        if updated is None:
            raise AccountNotFound()
        logger.info("password changed for account %s", account.id)
        return updated
