from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any

from .errors import ParseError, RemoteExecutionError

# Airflow prints tracebacks from its own exception module when a CLI command fails.
REMOTE_EXCEPTION_MARKER = "airflow.exceptions"


@dataclass(frozen=True)
class ConsoleResponse:
    stdout_raw: bytes
    stderr_raw: bytes
    stdout: str
    stderr: str

    def remote_error(self) -> RemoteExecutionError | None:
        if find_remote_exception(self.stderr):
            return RemoteExecutionError(self.stderr, response=self)
        return None

    def raise_for_remote_error(self) -> ConsoleResponse:
        err = self.remote_error()
        if err is not None:
            raise err
        return self


def find_remote_exception(stderr: str) -> bool:
    return REMOTE_EXCEPTION_MARKER in (stderr or "")


def _trim_newline(text: str) -> str:
    return text[:-1] if text.endswith("\n") else text


def _stream_bytes(doc: dict[str, Any], key: str) -> bytes:
    val = doc.get(key)
    if val is None:
        return b""
    if not isinstance(val, str):
        raise ParseError(f"invalid console response: {key} must be a base64 string")
    try:
        return base64.b64decode(val.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ParseError(f"invalid console response: {key} is not base64: {e}") from e


def console_response(stdout_raw: bytes, stderr_raw: bytes) -> ConsoleResponse:
    return ConsoleResponse(
        stdout_raw=stdout_raw,
        stderr_raw=stderr_raw,
        stdout=_trim_newline(stdout_raw.decode("utf-8", errors="replace")),
        stderr=_trim_newline(stderr_raw.decode("utf-8", errors="replace")),
    )


def decode_console_body(raw: bytes) -> ConsoleResponse:
    text = raw.decode("utf-8", errors="replace")
    try:
        doc = json.loads(text)
    except ValueError as e:
        raise ParseError(f"invalid JSON from console: {e}; body={text}") from e
    if not isinstance(doc, dict):
        raise ParseError("invalid JSON from console: expected object")
    return console_response(_stream_bytes(doc, "stdout"), _stream_bytes(doc, "stderr"))
