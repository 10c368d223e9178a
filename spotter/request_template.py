"""
Builds the single logical request every worker replicates.
The template is immutable; each attempt asks it for a fresh body stream.
"""

import io
import logging
import re
import urllib.parse
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from spotter.exceptions import ConfigurationError, FileError, URLParseError

logger = logging.getLogger(__name__)

# RFC 9110 token, used for header names and methods
_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


def normalize_url(raw_url: str) -> str:
    """Return an absolute URL string, defaulting the scheme to http."""
    url = raw_url.strip()
    if "://" not in url and not url.startswith("//"):
        logger.debug("Adding // to input url")
        url = "//" + url

    try:
        parts = urllib.parse.urlsplit(url)
        parts.port  # raises ValueError on a bad port
    except ValueError as e:
        raise URLParseError(f"Could not parse URL {raw_url!r}: {e}") from e

    if not parts.netloc:
        raise URLParseError(f"Could not parse URL {raw_url!r}: missing host")
    if not parts.scheme:
        parts = parts._replace(scheme="http")
    return urllib.parse.urlunsplit(parts)


def parse_header(entry: str) -> Tuple[str, bytes]:
    """Split a `key:value` header entry; anything else is malformed.

    The value is kept as UTF-8 bytes and sent on the wire unchanged.
    """
    pieces = entry.split(":")
    if len(pieces) != 2:
        raise ConfigurationError(f"malformed request header: {entry!r}")
    key, value = pieces[0].strip(), pieces[1].strip()
    if not _TOKEN.fullmatch(key):
        raise ConfigurationError(f"malformed request header: {entry!r}")
    if any(c in value for c in "\r\n\0"):
        raise ConfigurationError(f"malformed request header: {entry!r}")
    return key, value.encode("utf-8")


def load_body(data: str) -> bytes:
    """Literal body text, or the contents of a file when given `@path`."""
    if data.startswith("@"):
        path = data[1:]
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise FileError(f"Could not read from File {path}: {e}") from e
    return data.encode("utf-8")


@dataclass(frozen=True)
class RequestTemplate:
    method: str
    url: str
    headers: Tuple[Tuple[str, bytes], ...] = ()
    body: bytes = b""

    def open_body(self) -> Optional[io.BytesIO]:
        """A new, unread stream over the body; never shared between attempts."""
        if not self.body:
            return None
        return io.BytesIO(self.body)

    def header_dict(self) -> Dict[str, bytes]:
        # repeated names fold into one comma separated value
        merged: Dict[str, bytes] = {}
        lowered: Dict[str, str] = {}
        for key, value in self.headers:
            name = lowered.setdefault(key.lower(), key)
            if name in merged:
                merged[name] = merged[name] + b", " + value
            else:
                merged[name] = value
        return merged


def build_request_template(method: str, data: str, headers: Iterable[str], raw_url: str) -> RequestTemplate:
    if not _TOKEN.fullmatch(method):
        raise ConfigurationError(f"invalid HTTP method: {method!r}")
    # requests sends the method upper-cased
    method = method.upper()

    url = normalize_url(raw_url)
    parsed_headers = tuple(parse_header(h) for h in headers)
    body = load_body(data)

    logger.debug(f"Request template: {method} {url} headers={len(parsed_headers)} body={len(body)} bytes")
    return RequestTemplate(method=method, url=url, headers=parsed_headers, body=body)
