from __future__ import annotations

from ..client import MwaaClient
from ..command import Command
from ..errors import ParseError


def get_version(client: MwaaClient) -> str:
    """Return the Airflow version reported by the console."""

    lines = [line.strip() for line in client.send(Command.of("version")).stdout.split("\n") if line.strip()]
    if not lines:
        raise ParseError("empty output from version")
    return lines[-1]
