"""
Connection behavior shared by all workers: TLS verification, per-attempt
timeout, TCP keep-alive, pool sizing and the redirect policy.
"""

import enum
import logging
import socket
from dataclasses import dataclass
from typing import List, Optional, Tuple

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection

from spotter.exceptions import ConfigurationError, RedirectLimitError

logger = logging.getLogger(__name__)

NEVER_FOLLOW = -1


class RedirectDecision(enum.Enum):
    STOP = "stop"          # hand back the redirect response as it is
    FOLLOW = "follow"
    EXCEEDED = "exceeded"  # abort the attempt


class RedirectPolicy:
    """Decides, hop by hop, whether a redirect chain may continue.

    ``sent`` is the number of requests already sent for one attempt: the
    original request plus every redirect followed so far. With a limit of
    N, a chain of N redirects is followed to the end and the (N+1)th
    redirect aborts the attempt.
    """

    def __init__(self, max_redirects: int):
        if max_redirects < NEVER_FOLLOW:
            raise ConfigurationError(f"redirects must be -1 or greater, got {max_redirects}")
        self.max_redirects = max_redirects

    def decide(self, sent: int) -> RedirectDecision:
        if self.max_redirects == NEVER_FOLLOW:
            return RedirectDecision.STOP
        if sent > self.max_redirects:
            return RedirectDecision.EXCEEDED
        return RedirectDecision.FOLLOW

    def check(self, sent: int) -> bool:
        """True to follow, False to stop; raises once the limit is passed."""
        decision = self.decide(sent)
        if decision is RedirectDecision.EXCEEDED:
            raise RedirectLimitError(f"[SPOTTER]: Followed {self.max_redirects} redirects. Stopping...")
        return decision is RedirectDecision.FOLLOW


def keep_alive_options(interval: float) -> List[Tuple[int, int, int]]:
    options = list(HTTPConnection.default_socket_options)
    options.append((socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1))
    seconds = max(1, int(interval))
    # Linux and recent macOS; other platforms keep the OS defaults
    if hasattr(socket, "TCP_KEEPIDLE"):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, seconds))
    if hasattr(socket, "TCP_KEEPINTVL"):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, seconds))
    return options


class KeepAliveAdapter(HTTPAdapter):
    """HTTPAdapter whose pooled sockets have TCP keep-alive switched on."""

    def __init__(self, keep_alive: float, pool_maxsize: int):
        self.socket_options = keep_alive_options(keep_alive)
        super().__init__(pool_connections=1, pool_maxsize=pool_maxsize, max_retries=0)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["socket_options"] = self.socket_options
        super().init_poolmanager(*args, **kwargs)


@dataclass(frozen=True)
class TransportPolicy:
    tls_verify: bool = False
    request_timeout: float = 30.0
    max_redirects: int = 10
    keep_alive: float = 30.0
    max_idle_per_host: int = 10000

    @property
    def redirect_policy(self) -> RedirectPolicy:
        return RedirectPolicy(self.max_redirects)

    @property
    def timeout(self) -> Optional[Tuple[float, float]]:
        # (connect, read) and applied to every hop separately; 0 means no timeout
        if not self.request_timeout:
            return None
        return (self.request_timeout, self.request_timeout)

    def build_session(self) -> requests.Session:
        """A new session configured from this policy; one per worker."""
        if not self.tls_verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        session = requests.Session()
        session.verify = self.tls_verify
        adapter = KeepAliveAdapter(self.keep_alive, self.max_idle_per_host)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def send(self, session: requests.Session, prepared: requests.PreparedRequest) -> requests.Response:
        """Send one attempt, following redirects as the policy allows.

        The returned response is streamed; its body has not been read yet
        unless it is an unfollowed redirect.
        """
        policy = self.redirect_policy
        response = session.send(prepared, allow_redirects=False, stream=True, timeout=self.timeout)
        sent = 1
        while response.is_redirect and response.next is not None:
            if not policy.check(sent):
                logger.debug(f"Not following redirect to {response.headers.get('location')}")
                break
            logger.debug(f"Following redirect {sent} to {response.next.url}")
            response.close()
            response = session.send(response.next, allow_redirects=False, stream=True, timeout=self.timeout)
            sent += 1
        return response
