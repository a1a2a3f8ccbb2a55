from __future__ import annotations

import dataclasses
import re
import urllib.parse

from .consts import DEFAULT_PORT, PROTOCOL_VERSION, SIGN_IN_PATH

_scheme_re = re.compile(r"^wss?://")


@dataclasses.dataclass(frozen=True)
class Endpoint:
    url: str

    # host[:port] sent in the Host header. websockets derives the header from
    # the URL, so the two always agree.
    host: str


def resolve_endpoint(
    *,
    signaling_server: str,
    signaling_url: str | None,
    peer_name: str,
) -> Endpoint:
    """
    Build the sign-in URL.

    The previously observed signaling URL, when present, is authoritative
    because it names the server that actually terminates the session. That
    may differ from the configured server (e.g. when the session resource was
    an rtsps:// URL).
    """

    host = None
    if signaling_url:
        host = _host_from_url(signaling_url)
    if not host:
        host = _with_default_port(signaling_server)

    query = urllib.parse.urlencode(
        {"peer_id": peer_name, "version": PROTOCOL_VERSION}
    )
    return Endpoint(
        url=f"wss://{host}/{SIGN_IN_PATH}?{query}",
        host=host,
    )


def _host_from_url(url: str) -> str | None:
    without_scheme = _scheme_re.sub("", url)
    host_port = without_scheme.split("/")[0]
    if len(host_port) == 0:
        return None
    return _with_default_port(host_port)


def _with_default_port(host: str) -> str:
    if ":" in host:
        return host
    return f"{host}:{DEFAULT_PORT}"
