"""Outbound HTTP requests."""
from __future__ import annotations

import http.client
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Iterable, Protocol, Tuple

from .config import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT, Settings
from .errors import TransportError

logger = logging.getLogger("qshare.transport")


@dataclass(frozen=True)
class RequestSpec:
    method: str
    url: str

    @property
    def canonical_url(self) -> str:
        return self.url


class Transport(Protocol):
    def execute(self, request: RequestSpec) -> str:
        ...


def build_url(base_url: str, params: Iterable[Tuple[str, str]]) -> str:
    """Append form-encoded query parameters to ``base_url`` in the given order."""
    query = urllib.parse.urlencode(list(params))
    if not query:
        return base_url
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"


class UrllibTransport:
    def __init__(self, timeout: float = DEFAULT_TIMEOUT, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.timeout = timeout
        self.user_agent = user_agent

    @classmethod
    def from_settings(cls, settings: Settings) -> "UrllibTransport":
        return cls(timeout=settings.timeout, user_agent=settings.user_agent)

    def execute(self, request: RequestSpec) -> str:
        logger.debug("request: %s %s", request.method, request.url)
        req = urllib.request.Request(
            request.url,
            method=request.method,
            headers={"User-Agent": self.user_agent},
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                charset = resp.headers.get_content_charset() or "utf-8"
                payload = resp.read()
        except urllib.error.HTTPError as exc:
            raise TransportError(f"HTTP {exc.code} from {request.url}") from exc
        except (
            urllib.error.URLError,
            http.client.HTTPException,
            TimeoutError,
            socket.timeout,
            OSError,
        ) as exc:
            raise TransportError(f"Request to {request.url} failed: {exc}") from exc
        try:
            return payload.decode(charset, errors="replace")
        except LookupError:
            return payload.decode("utf-8", errors="replace")
