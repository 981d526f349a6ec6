from __future__ import annotations

import json
from typing import Any

from ..client import MwaaClient
from ..command import Command
from ..errors import UsageError
from ..models import Variable
from ..parsers import parse_json_array, parse_json_value


def list_variables(client: MwaaClient) -> list[Variable]:
    cmd = Command.of("variables", "list").option("--output", "json")
    return parse_json_array(client.send(cmd), Variable.from_json, label="variables list")


def get_variable(client: MwaaClient, key: str, *, deserialize_json: bool = False) -> Any:
    """Return the variable's text, or its decoded JSON value with ``deserialize_json``."""

    cmd = Command.of("variables", "get").switch("--json", deserialize_json).arg(key)
    data = client.send(cmd)
    if deserialize_json:
        return parse_json_value(data, label=f"variables get {key}")
    return data.stdout


def set_variable(client: MwaaClient, key: str, value: Any, *, serialize_json: bool = False) -> None:
    if serialize_json:
        try:
            text = json.dumps(value, separators=(",", ":"), sort_keys=True)
        except (TypeError, ValueError) as e:
            raise UsageError(f"variable {key!r} value is not JSON serializable: {e}") from e
    else:
        text = str(value)
    cmd = Command.of("variables", "set").switch("--json", serialize_json).arg(key).arg(text)
    client.send(cmd)


def delete_variable(client: MwaaClient, key: str) -> None:
    client.send(Command.of("variables", "delete").arg(key))
