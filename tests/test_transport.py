import socket

import pytest
import requests

from spotter.exceptions import ConfigurationError, RedirectLimitError
from spotter.transport import (
    KeepAliveAdapter,
    RedirectDecision,
    RedirectPolicy,
    TransportPolicy,
    keep_alive_options,
)


def test_never_follow():
    policy = RedirectPolicy(-1)
    assert policy.decide(1) is RedirectDecision.STOP
    assert policy.check(1) is False


def test_follow_up_to_limit():
    policy = RedirectPolicy(2)
    assert policy.decide(1) is RedirectDecision.FOLLOW
    assert policy.decide(2) is RedirectDecision.FOLLOW
    assert policy.decide(3) is RedirectDecision.EXCEEDED


def test_zero_limit_rejects_first_redirect():
    assert RedirectPolicy(0).decide(1) is RedirectDecision.EXCEEDED


def test_exceeded_raises_too_many_redirects():
    with pytest.raises(RedirectLimitError) as info:
        RedirectPolicy(1).check(2)
    assert isinstance(info.value, requests.exceptions.TooManyRedirects)


def test_invalid_limit():
    with pytest.raises(ConfigurationError):
        RedirectPolicy(-2)


def test_keep_alive_socket_options():
    options = keep_alive_options(15)
    assert (socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1) in options
    if hasattr(socket, "TCP_KEEPIDLE"):
        assert (socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, 15) in options


def test_session_from_policy():
    policy = TransportPolicy(tls_verify=True, max_idle_per_host=7)
    session = policy.build_session()
    try:
        assert session.verify is True
        adapter = session.get_adapter("https://example.com/")
        assert isinstance(adapter, KeepAliveAdapter)
        assert adapter._pool_maxsize == 7
    finally:
        session.close()


def test_policy_timeout_applies_per_hop():
    assert TransportPolicy(request_timeout=2.5).timeout == (2.5, 2.5)


def _send(target, path, max_redirects):
    policy = TransportPolicy(max_redirects=max_redirects, request_timeout=5)
    session = policy.build_session()
    try:
        prepared = session.prepare_request(requests.Request("GET", f"{target}{path}"))
        response = policy.send(session, prepared)
        return response.status_code, response.content
    finally:
        session.close()


def test_send_follows_chain_within_limit(target):
    assert _send(target, "/redirect/2", 2) == (200, b"done")


def test_send_stops_when_never_following(target):
    status, _ = _send(target, "/redirect/1", -1)
    assert status == 302


def test_send_raises_past_limit(target):
    with pytest.raises(RedirectLimitError):
        _send(target, "/redirect/3", 2)


def test_zero_timeout_means_no_timeout():
    assert TransportPolicy(request_timeout=0).timeout is None
