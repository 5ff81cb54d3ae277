"""Credential handling for remote URLs.

Clone and fetch authenticate through the URL's userinfo component; every
string that may contain such a URL is redacted before it reaches a log line
or an exception message.
"""

from __future__ import annotations

import re
from urllib.parse import quote, urlsplit, urlunsplit

_USERINFO_RE = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/@\s]+@")

TOKEN_PASSWORD = "x-oauth-basic"


def authenticated_url(
    url: str,
    *,
    token: str | None = None,
    username: str | None = None,
    password: str | None = None,
) -> str:
    """Return ``url`` with credentials in its userinfo.

    A token wins over username/password. Non-HTTP URLs (ssh, file paths) and
    calls without credentials return the URL unchanged.
    """
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        return url
    if token:
        userinfo = f"{quote(token, safe='')}:{TOKEN_PASSWORD}"
    elif username and password:
        userinfo = f"{quote(username, safe='')}:{quote(password, safe='')}"
    else:
        return url
    host = parts.hostname or ""
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, f"{userinfo}@{host}", parts.path, parts.query, parts.fragment))


def strip_credentials(url: str) -> str:
    """Remove any userinfo from an http(s) URL."""
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or "@" not in parts.netloc:
        return url
    return urlunsplit(
        (parts.scheme, parts.netloc.rsplit("@", 1)[1], parts.path, parts.query, parts.fragment)
    )


def redact(text: str) -> str:
    """Replace URL userinfo in free text with ``***``."""
    return _USERINFO_RE.sub(r"\g<scheme>***@", text)
