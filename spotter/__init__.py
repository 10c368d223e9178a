"""spotter: concurrent HTTP load generation against a single URL."""

from spotter.config import VERSION as __version__
