from __future__ import annotations

from ..client import MwaaClient
from ..command import Command
from ..errors import ParseError
from ..models import Provider, ProviderBehaviour, ProviderDetail, ProviderHook, ProviderLink
from ..parsers import parse_json_array


def list_providers(client: MwaaClient) -> list[Provider]:
    cmd = Command.of("providers", "list").option("--output", "json")
    return parse_json_array(client.send(cmd), Provider.from_json, label="providers list")


def get_provider(client: MwaaClient, package_name: str) -> ProviderDetail:
    cmd = Command.of("providers", "get").switch("--full").option("--output", "json").arg(package_name)
    details = parse_json_array(client.send(cmd), ProviderDetail.from_json, label="providers get")
    if not details:
        raise ParseError(f"providers get returned no detail for {package_name!r}")
    return details[0]


def list_provider_hooks(client: MwaaClient) -> list[ProviderHook]:
    cmd = Command.of("providers", "hooks").option("--output", "json")
    return parse_json_array(client.send(cmd), ProviderHook.from_json, label="providers hooks")


def list_provider_links(client: MwaaClient) -> list[ProviderLink]:
    cmd = Command.of("providers", "links").option("--output", "json")
    return parse_json_array(client.send(cmd), ProviderLink.from_json, label="providers links")


def list_provider_behaviours(client: MwaaClient) -> list[ProviderBehaviour]:
    cmd = Command.of("providers", "behaviours").option("--output", "json")
    return parse_json_array(client.send(cmd), ProviderBehaviour.from_json, label="providers behaviours")
