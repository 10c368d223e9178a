"""Error hierarchy for spotter.

Startup errors (ConfigurationError, FileError, URLParseError) abort the run
before any worker starts. Per-request errors (NetworkError, BadStatusError)
never leave a worker: they are turned into outcomes and counted.
"""

import requests


class SpotterError(Exception):
    """Base class for every error raised by spotter itself."""


class ConfigurationError(SpotterError):
    pass


class FileError(SpotterError):
    pass


class URLParseError(SpotterError):
    pass


class NetworkError(SpotterError):
    """Transport failure: DNS, connect, TLS, timeout, redirect limit."""


class BadStatusError(SpotterError):
    """The exchange completed but the body could not be read."""


class CollectorClosedError(SpotterError):
    pass


class RedirectLimitError(requests.exceptions.TooManyRedirects):
    """Raised when a redirect chain goes past the configured limit."""
