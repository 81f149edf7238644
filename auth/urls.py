from __future__ import annotations

import urllib.parse
from dataclasses import dataclass, replace

DEFAULT_PORTS = {"http": 80, "https": 443}
LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "::1"}


@dataclass(frozen=True)
class CallbackParts:
    scheme: str
    userinfo: str
    host: str
    port: int | None
    path: str
    query: str
    fragment: str
    # urlsplit reports an empty "?", "#" or "@" the same as a missing one.
    has_userinfo: bool = False
    has_query: bool = False
    has_fragment: bool = False

    @property
    def is_loopback(self) -> bool:
        return self.scheme == "http" and self.host in LOOPBACK_HOSTS


def _has_forbidden_chars(uri: str) -> bool:
    # urlsplit silently drops tabs and newlines, so reject them up front.
    return any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in uri)


def parse_callback(uri: str | None) -> CallbackParts | None:
    """Split an absolute URI into comparable parts, or return None.

    Absolute means a scheme and a host are both present. Anything that
    cannot be parsed unambiguously is treated as not absolute.
    """
    if not isinstance(uri, str) or not uri:
        return None
    if _has_forbidden_chars(uri):
        return None

    try:
        parsed = urllib.parse.urlsplit(uri)
        port = parsed.port
    except ValueError:
        return None

    if not parsed.scheme or not parsed.netloc or not parsed.hostname:
        return None

    scheme = parsed.scheme.lower()
    if port is None:
        port = DEFAULT_PORTS.get(scheme)
    userinfo, _, _ = parsed.netloc.rpartition("@")

    return CallbackParts(
        scheme=scheme,
        userinfo=userinfo,
        host=parsed.hostname.lower(),
        port=port,
        path=parsed.path or "/",
        query=parsed.query,
        fragment=parsed.fragment,
        has_userinfo="@" in parsed.netloc,
        has_query="?" in uri.split("#", 1)[0],
        has_fragment="#" in uri,
    )


def is_absolute_uri(uri: str | None) -> bool:
    return parse_callback(uri) is not None


def callbacks_match(
    requested: CallbackParts,
    registered: CallbackParts,
    *,
    loopback_any_port: bool = False,
) -> bool:
    if loopback_any_port and requested.is_loopback and registered.is_loopback:
        return requested == replace(registered, port=requested.port)
    return requested == registered


def append_query_params(url: str, params: dict[str, str]) -> str:
    parsed = urllib.parse.urlsplit(url)
    existing = urllib.parse.parse_qs(parsed.query, keep_blank_values=True)
    for key, value in params.items():
        existing[key] = [value]

    new_query = urllib.parse.urlencode(existing, doseq=True)
    return urllib.parse.urlunsplit(parsed._replace(query=new_query))
