"""
Run configuration for spotter.
Defaults can be overridden through SPOTTER_* environment variables; the CLI
collects everything into one immutable Settings value at startup.
"""

import logging
import math
import os
import re
from dataclasses import dataclass
from typing import Tuple

from spotter.exceptions import ConfigurationError

# ----------------- Defaults (env overridable) -----------------
VERSION = "0.0.1"
BUILD = os.getenv("SPOTTER_BUILD", "dev")

DEFAULT_REQUEST_TIMEOUT = os.getenv("SPOTTER_REQUEST_TIMEOUT", "30s")
DEFAULT_REDIRECTS = int(os.getenv("SPOTTER_REDIRECTS", "10"))
DEFAULT_KEEP_ALIVE = os.getenv("SPOTTER_KEEP_ALIVE", "30s")
DEFAULT_MAX_IDLE = int(os.getenv("SPOTTER_MAX_IDLE", "10000"))  # pooled connections per host

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """Parse a Go-style duration ("500ms", "30s", "1m30s") into seconds.

    A bare number is taken as seconds.
    """
    raw = text.strip()
    if not raw:
        raise ConfigurationError("empty duration")
    try:
        seconds = float(raw)
    except ValueError:
        pass
    else:
        if seconds < 0 or not math.isfinite(seconds):
            raise ConfigurationError(f"invalid duration: {text!r}")
        return seconds

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(raw):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(raw) or pos == 0:
        raise ConfigurationError(f"invalid duration: {text!r}")
    return total


@dataclass(frozen=True)
class Settings:
    url: str
    requests: int = 1
    clients: int = 1
    method: str = "GET"
    data: str = ""
    output: str = ""
    headers: Tuple[str, ...] = ()
    request_timeout: float = 30.0
    redirects: int = DEFAULT_REDIRECTS
    keep_alive: float = 30.0
    max_idle_per_host: int = DEFAULT_MAX_IDLE
    tls_verify: bool = False
    dev: bool = False

    @property
    def total_requests(self) -> int:
        return self.requests * self.clients

    def validate(self) -> None:
        if self.requests < 1:
            raise ConfigurationError(f"requests must be at least 1, got {self.requests}")
        if self.clients < 1:
            raise ConfigurationError(f"clients must be at least 1, got {self.clients}")
        if self.redirects < -1:
            raise ConfigurationError(f"redirects must be -1 or greater, got {self.redirects}")
        if self.request_timeout < 0:
            raise ConfigurationError("reqTimeout must not be negative")
        if self.max_idle_per_host < 1:
            raise ConfigurationError(f"maxIdle must be at least 1, got {self.max_idle_per_host}")


def setup_logging(dev: bool = False) -> None:
    """Configure root logging; -dev turns on internals at DEBUG."""
    logging.basicConfig(
        level=logging.DEBUG if dev else logging.WARNING,
        format=LOG_FORMAT,
        force=True,
    )
    # urllib3 is chatty at DEBUG, one line per connection
    logging.getLogger("urllib3").setLevel(logging.INFO if dev else logging.WARNING)
