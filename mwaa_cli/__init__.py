"""Typed client for the Amazon MWAA Airflow CLI console endpoint.

The console accepts one Airflow command line per request and answers with the
captured stdout/stderr streams; this package handles the token, the request,
the stream decoding and the parsing of both JSON and plain-text output.
"""

from .client import MwaaClient
from .decoding import ConsoleResponse
from .errors import (
    CredentialError,
    DagNotFound,
    DagRunNotFound,
    DomainNotFound,
    MwaaError,
    ParseError,
    RemoteExecutionError,
    TransportError,
    UsageError,
)

__all__ = [
    "ConsoleResponse",
    "CredentialError",
    "DagNotFound",
    "DagRunNotFound",
    "DomainNotFound",
    "MwaaClient",
    "MwaaError",
    "ParseError",
    "RemoteExecutionError",
    "TransportError",
    "UsageError",
    "__version__",
]

__version__ = "0.1.0"
