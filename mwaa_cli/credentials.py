from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from .errors import CredentialError

logger = logging.getLogger(__name__)

# MWAA CLI tokens live for 60 seconds from issuance. The local window starts
# before the issuance call and ends early so no command carries a dead token.
TOKEN_LIFETIME_SECONDS = 60
REFRESH_SKEW_SECONDS = 10
TOKEN_VALIDITY_SECONDS = TOKEN_LIFETIME_SECONDS - REFRESH_SKEW_SECONDS

CredentialIssuer = Callable[[str], dict[str, Any]]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Credential:
    token: str
    host: str
    expires_at: datetime

    def expired(self, now: datetime) -> bool:
        return now >= self.expires_at


def mwaa_cli_token_issuer(mwaa_client: Any) -> CredentialIssuer:
    """Issue console tokens with boto3's ``mwaa.create_cli_token``."""

    def issue(environment_name: str) -> dict[str, Any]:
        return mwaa_client.create_cli_token(Name=environment_name)

    return issue


class TokenManager:
    def __init__(
        self,
        environment_name: str,
        issuer: CredentialIssuer,
        *,
        clock: Clock = _utcnow,
        validity_seconds: int = TOKEN_VALIDITY_SECONDS,
    ) -> None:
        self.environment_name = environment_name
        self._issuer = issuer
        self._clock = clock
        self._validity = timedelta(seconds=max(int(validity_seconds), 1))
        self._credential: Credential | None = None
        self._lock = threading.Lock()

    @property
    def credential(self) -> Credential | None:
        return self._credential

    def ensure_valid(self) -> Credential:
        with self._lock:
            current = self._credential
            if current is not None and not current.expired(self._clock()):
                return current
            self._credential = self._refresh()
            return self._credential

    def invalidate(self) -> None:
        with self._lock:
            self._credential = None

    def _refresh(self) -> Credential:
        requested_at = self._clock()
        logger.debug("requesting console token for environment %s", self.environment_name)
        try:
            resp = self._issuer(self.environment_name)
        except Exception as e:
            raise CredentialError(
                f"create-cli-token failed for environment {self.environment_name!r}: {e}"
            ) from e
        if not isinstance(resp, dict):
            raise CredentialError("create-cli-token returned an unexpected response shape")
        token = str(resp.get("CliToken") or "").strip()
        host = str(resp.get("WebServerHostname") or "").strip()
        if not token:
            raise CredentialError("create-cli-token response missing CliToken")
        if not host:
            raise CredentialError("create-cli-token response missing WebServerHostname")
        return Credential(token=token, host=host, expires_at=requested_at + self._validity)
