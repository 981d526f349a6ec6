from __future__ import annotations

import logging
from typing import Callable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .credentials import Credential
from .errors import TransportError

logger = logging.getLogger(__name__)

CONSOLE_PATH = "/aws_mwaa/cli"
DEFAULT_TIMEOUT_SECONDS = 60

HttpPost = Callable[..., tuple]


def _http_request(
    *,
    method: str,
    url: str,
    headers: dict[str, str],
    body: bytes | None = None,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> tuple[int, dict[str, str], bytes]:
    req = Request(url, data=body, method=str(method).upper())
    for k, v in headers.items():
        req.add_header(k, v)
    try:
        with urlopen(req, timeout=timeout_seconds) as resp:
            status = getattr(resp, "status", 200)
            hdrs = {k.lower(): v for k, v in dict(resp.headers).items()}
            data = resp.read()
            return int(status), hdrs, data
    except HTTPError as e:
        hdrs = {k.lower(): v for k, v in dict(e.headers or {}).items()}
        data = e.read() if hasattr(e, "read") else b""
        return int(getattr(e, "code", 0) or 0), hdrs, data
    except (URLError, OSError) as e:
        raise TransportError(f"http request failed: {e}") from e


def _http_post_text(
    *,
    url: str,
    headers: dict[str, str],
    body: bytes = b"",
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> tuple[int, dict[str, str], bytes]:
    return _http_request(
        method="POST",
        url=url,
        headers=headers,
        body=body,
        timeout_seconds=timeout_seconds,
    )


def console_url(host: str) -> str:
    h = (host or "").strip().rstrip("/")
    if h.startswith("https://"):
        h = h[len("https://"):]
    return f"https://{h}{CONSOLE_PATH}"


def post_command(
    credential: Credential,
    command: str,
    *,
    http_post: HttpPost | None = None,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> bytes:
    post = http_post or _http_post_text
    status, _hdrs, raw = post(
        url=console_url(credential.host),
        headers={
            "Content-Type": "text/plain",
            "Authorization": f"Bearer {credential.token}",
        },
        body=command.encode("utf-8"),
        timeout_seconds=timeout_seconds,
    )
    if status < 200 or status >= 300:
        text = raw.decode("utf-8", errors="replace")
        logger.warning("console request failed: status=%s", status)
        raise TransportError(f"console request failed: status={status} body={text}", status=status, body=text)
    return raw
