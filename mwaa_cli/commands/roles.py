from __future__ import annotations

from ..client import MwaaClient
from ..command import Command
from ..models import Role
from ..parsers import parse_json_array


def list_roles(client: MwaaClient) -> list[Role]:
    cmd = Command.of("roles", "list").option("--output", "json")
    return parse_json_array(client.send(cmd), Role.from_json, label="roles list")
