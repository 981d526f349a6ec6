from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from mwaa_cli.credentials import TOKEN_LIFETIME_SECONDS, TOKEN_VALIDITY_SECONDS, TokenManager, mwaa_cli_token_issuer
from mwaa_cli.errors import CredentialError


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2022, 1, 21, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


class _Issuer:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def __call__(self, environment_name: str) -> dict[str, object]:
        self.calls.append(environment_name)
        return {"CliToken": f"tok-{len(self.calls)}", "WebServerHostname": "abc.airflow.example.com"}


def test_first_use_issues_token() -> None:
    issuer = _Issuer()
    tokens = TokenManager("my-env", issuer, clock=_Clock())
    assert tokens.credential is None

    cred = tokens.ensure_valid()

    assert issuer.calls == ["my-env"]
    assert cred.token == "tok-1"
    assert cred.host == "abc.airflow.example.com"


def test_valid_token_is_reused() -> None:
    clock = _Clock()
    issuer = _Issuer()
    tokens = TokenManager("my-env", issuer, clock=clock)
    tokens.ensure_valid()
    clock.advance(49)

    assert tokens.ensure_valid().token == "tok-1"
    assert len(issuer.calls) == 1


def test_expired_token_is_refreshed() -> None:
    clock = _Clock()
    issuer = _Issuer()
    tokens = TokenManager("my-env", issuer, clock=clock)
    first = tokens.ensure_valid()
    clock.advance(TOKEN_VALIDITY_SECONDS)

    second = tokens.ensure_valid()

    assert second.token == "tok-2"
    assert second.expires_at == first.expires_at + timedelta(seconds=TOKEN_VALIDITY_SECONDS)


def test_invalidate_forces_refresh() -> None:
    issuer = _Issuer()
    tokens = TokenManager("my-env", issuer, clock=_Clock())
    tokens.ensure_valid()
    tokens.invalidate()
    assert tokens.ensure_valid().token == "tok-2"


def test_issuer_failure_is_credential_error() -> None:
    def issuer(_name: str) -> dict[str, object]:
        raise RuntimeError("AccessDenied")

    tokens = TokenManager("my-env", issuer, clock=_Clock())
    with pytest.raises(CredentialError, match="AccessDenied"):
        tokens.ensure_valid()
    assert tokens.credential is None


@pytest.mark.parametrize(
    "resp, needle",
    [
        ({"WebServerHostname": "h"}, "CliToken"),
        ({"CliToken": "t"}, "WebServerHostname"),
        ("nope", "shape"),
    ],
)
def test_incomplete_issuer_response(resp, needle) -> None:
    tokens = TokenManager("my-env", lambda _name: resp, clock=_Clock())
    with pytest.raises(CredentialError, match=needle):
        tokens.ensure_valid()


def test_concurrent_callers_share_one_refresh() -> None:
    issuer = _Issuer()
    tokens = TokenManager("my-env", issuer, clock=_Clock())
    barrier = threading.Barrier(8)
    seen: list[str] = []

    def worker() -> None:
        barrier.wait()
        seen.append(tokens.ensure_valid().token)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(issuer.calls) == 1
    assert seen == ["tok-1"] * 8


def test_mwaa_cli_token_issuer_calls_boto3_client() -> None:
    class _Mwaa:
        def __init__(self) -> None:
            self.kwargs: dict[str, object] = {}

        def create_cli_token(self, **kwargs):
            self.kwargs = kwargs
            return {"CliToken": "t", "WebServerHostname": "h"}

    mwaa = _Mwaa()
    issue = mwaa_cli_token_issuer(mwaa)
    assert issue("my-env") == {"CliToken": "t", "WebServerHostname": "h"}
    assert mwaa.kwargs == {"Name": "my-env"}


def test_window_ends_before_provider_expiry_when_issuance_is_slow() -> None:
    clock = _Clock()
    issued_at: list[datetime] = []

    def slow_issuer(_name: str) -> dict[str, object]:
        issued_at.append(clock.now)
        clock.advance(2)
        return {"CliToken": "t", "WebServerHostname": "h"}

    tokens = TokenManager("my-env", slow_issuer, clock=clock)
    cred = tokens.ensure_valid()

    provider_expiry = issued_at[0] + timedelta(seconds=TOKEN_LIFETIME_SECONDS)
    assert cred.expires_at < provider_expiry
    assert TOKEN_VALIDITY_SECONDS < TOKEN_LIFETIME_SECONDS
