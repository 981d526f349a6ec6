from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import NoRegionError, ProfileNotFound
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from .client import MwaaClient
from .errors import UsageError
from .transport import DEFAULT_TIMEOUT_SECONDS

MWAA_ENVIRONMENT_NAME = "MWAA_ENVIRONMENT_NAME"
MWAA_CLI_TIMEOUT_SECONDS = "MWAA_CLI_TIMEOUT_SECONDS"
AWS_PROFILE = "AWS_PROFILE"
AWS_REGION = "AWS_REGION"


@dataclass(frozen=True)
class GlobalOpts:
    environment: str = ""
    profile: str = ""
    region: str = ""
    pretty: bool = True
    quiet: bool = False
    verbose: bool = False
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS


def _env_or_none(*names: str) -> str | None:
    for n in names:
        v = (os.environ.get(n) or "").strip()
        if v:
            return v
    return None


def _require_str(val: str | None, name: str, *, hint: str) -> str:
    v = (val or "").strip()
    if not v:
        raise UsageError(f"missing {name} ({hint})")
    return v


def _bootstrap_env() -> None:
    # Load .env without overriding values already exported in the process environment.
    load_dotenv()


def _timeout_from_env() -> int:
    raw = _env_or_none(MWAA_CLI_TIMEOUT_SECONDS)
    if raw is None:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        val = int(raw)
    except ValueError as e:
        raise UsageError(f"invalid {MWAA_CLI_TIMEOUT_SECONDS}: {raw!r}") from e
    if val <= 0:
        raise UsageError(f"invalid {MWAA_CLI_TIMEOUT_SECONDS}: must be positive")
    return val


def _resolve_global_opts(
    *,
    environment: str | None,
    profile: str | None,
    region: str | None,
    plain_json: bool = False,
    quiet: bool = False,
    verbose: bool = False,
) -> GlobalOpts:
    return GlobalOpts(
        environment=(environment or _env_or_none(MWAA_ENVIRONMENT_NAME) or ""),
        profile=(profile or _env_or_none(AWS_PROFILE) or ""),
        region=(region or _env_or_none(AWS_REGION) or ""),
        pretty=not plain_json,
        quiet=quiet,
        verbose=verbose,
        timeout_seconds=_timeout_from_env(),
    )


def _configure_logging(g: GlobalOpts) -> None:
    level = logging.WARNING
    if g.verbose:
        level = logging.DEBUG
    elif g.quiet:
        level = logging.ERROR
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _account_session(g: GlobalOpts) -> Any:
    kwargs: dict[str, str] = {}
    if g.profile:
        kwargs["profile_name"] = g.profile
    if g.region:
        kwargs["region_name"] = g.region
    try:
        session = boto3.session.Session(**kwargs)
        region = session.region_name
    except ProfileNotFound as e:
        raise UsageError(f"unknown AWS profile {g.profile!r} (pass --profile or set {AWS_PROFILE})") from e
    if not region:
        raise UsageError(f"missing AWS region (pass --region or set {AWS_REGION})")
    return session


def _client(g: GlobalOpts) -> MwaaClient:
    env_name = _require_str(
        g.environment,
        "MWAA environment name",
        hint=f"pass --env or set {MWAA_ENVIRONMENT_NAME}",
    )
    session = _account_session(g)
    try:
        return MwaaClient.from_session(env_name, session, timeout_seconds=g.timeout_seconds)
    except NoRegionError as e:
        raise UsageError(f"missing AWS region (pass --region or set {AWS_REGION})") from e


def _print_json(obj: Any, *, pretty: bool) -> None:
    if pretty:
        sys.stdout.write(json.dumps(obj, indent=2, sort_keys=True) + "\n")
    else:
        sys.stdout.write(json.dumps(obj, separators=(",", ":"), sort_keys=True) + "\n")
