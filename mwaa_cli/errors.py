from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .decoding import ConsoleResponse


class MwaaError(Exception):
    pass


class UsageError(MwaaError):
    pass


class CredentialError(MwaaError):
    pass


class TransportError(MwaaError):
    def __init__(self, message: str, *, status: int = 0, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class RemoteExecutionError(MwaaError):
    """The console ran the command but Airflow reported an exception on stderr."""

    def __init__(self, stderr: str, *, response: ConsoleResponse | None = None) -> None:
        super().__init__(stderr)
        self.stderr = stderr
        self.response = response


class ParseError(MwaaError):
    pass


class DomainNotFound(MwaaError):
    pass


class DagNotFound(DomainNotFound):
    def __init__(self, message: str, *, dag_id: str = "") -> None:
        super().__init__(message)
        self.dag_id = dag_id


class DagRunNotFound(DomainNotFound):
    def __init__(self, message: str, *, dag_id: str = "", execution_date: str = "", run_id: str = "") -> None:
        super().__init__(message)
        self.dag_id = dag_id
        self.execution_date = execution_date
        self.run_id = run_id
