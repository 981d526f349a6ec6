from __future__ import annotations

import logging
from typing import Any

from .command import Command
from .credentials import Clock, CredentialIssuer, TokenManager, _utcnow, mwaa_cli_token_issuer
from .decoding import ConsoleResponse, decode_console_body
from .transport import DEFAULT_TIMEOUT_SECONDS, HttpPost, post_command

logger = logging.getLogger(__name__)


class MwaaClient:
    """Runs Airflow CLI commands on one MWAA environment's console endpoint."""

    def __init__(
        self,
        environment_name: str,
        *,
        issuer: CredentialIssuer | None = None,
        tokens: TokenManager | None = None,
        http_post: HttpPost | None = None,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        clock: Clock = _utcnow,
    ) -> None:
        if tokens is None:
            if issuer is None:
                raise ValueError("MwaaClient needs an issuer or a TokenManager")
            tokens = TokenManager(environment_name, issuer, clock=clock)
        self.environment_name = environment_name
        self.tokens = tokens
        self._http_post = http_post
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_session(cls, environment_name: str, session: Any, **kwargs: Any) -> MwaaClient:
        """Build a client whose tokens come from ``session.client("mwaa")``."""

        return cls(environment_name, issuer=mwaa_cli_token_issuer(session.client("mwaa")), **kwargs)

    def send_raw(self, command: Command | str) -> ConsoleResponse:
        """Run a command and return both streams without checking stderr."""

        line = command.render() if isinstance(command, Command) else str(command)
        verb = command.verb_path if isinstance(command, Command) else line.split(" ", 1)[0]
        credential = self.tokens.ensure_valid()
        logger.debug("sending console command: %s", verb)
        raw = post_command(
            credential,
            line,
            http_post=self._http_post,
            timeout_seconds=self.timeout_seconds,
        )
        return decode_console_body(raw)

    def send(self, command: Command | str) -> ConsoleResponse:
        """Run a command; raise RemoteExecutionError if Airflow reported an exception."""

        return self.send_raw(command).raise_for_remote_error()
