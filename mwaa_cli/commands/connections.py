from __future__ import annotations

from ..client import MwaaClient
from ..command import Command
from ..errors import UsageError
from ..models import Connection
from ..parsers import parse_json_array


def add_connection(client: MwaaClient, conn: Connection) -> None:
    conn_id = (conn.conn_id or "").strip()
    if not conn_id:
        raise UsageError("Connection.conn_id is empty, please provide a connection id")
    cmd = Command.of("connections", "add")
    cmd.option_if("--conn-description", conn.description)
    cmd.option_if("--conn-extra", conn.extra)
    cmd.option_if("--conn-host", conn.host)
    cmd.option_if("--conn-login", conn.login)
    cmd.option_if("--conn-password", conn.password)
    cmd.option_if("--conn-port", conn.port)
    cmd.option_if("--conn-schema", conn.schema)
    cmd.option_if("--conn-type", conn.conn_type)
    cmd.arg(conn_id)
    client.send(cmd)


def delete_connection(client: MwaaClient, conn_id: str) -> None:
    client.send(Command.of("connections", "delete").arg(conn_id))


def list_connections(client: MwaaClient) -> list[Connection]:
    cmd = Command.of("connections", "list").option("--output", "json")
    return parse_json_array(client.send(cmd), Connection.from_json, label="connections list")
