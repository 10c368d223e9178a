"""
One load-generating client: a fixed quota of sequential attempts, each
producing exactly one classified Outcome.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from spotter.exceptions import BadStatusError, NetworkError
from spotter.request_template import RequestTemplate
from spotter.transport import TransportPolicy

logger = logging.getLogger(__name__)


class Category(enum.Enum):
    NETWORK = "net"
    BAD = "bad"
    SUCCESS = "succ"


@dataclass(frozen=True)
class Outcome:
    category: Category
    payload: str


def is_success(status_code: int) -> bool:
    return 200 <= status_code <= 299


def declared_charset(content_type: str) -> Optional[str]:
    """The charset parameter of a Content-Type header, if one is given."""
    for param in content_type.split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset":
            return value.strip().strip("'\"") or None
    return None


def decode_body(response: requests.Response, content: bytes) -> str:
    # no declared charset means UTF-8
    encoding = declared_charset(response.headers.get("content-type", "")) or "utf-8"
    try:
        return content.decode(encoding, errors="replace")
    except LookupError:
        # unknown charset in Content-Type
        return content.decode("utf-8", errors="replace")


class Worker:
    def __init__(self, worker_id: int, template: RequestTemplate, policy: TransportPolicy,
                 quota: int, sink, session: Optional[requests.Session] = None):
        self.worker_id = worker_id
        self.template = template
        self.policy = policy
        self.quota = quota
        self.sink = sink
        self.session = session if session is not None else policy.build_session()

    def run(self) -> int:
        """Run the whole quota; returns the number of outcomes emitted."""
        emitted = 0
        try:
            for i in range(1, self.quota + 1):
                logger.debug(f"Client {self.worker_id} making request {i}")
                self.sink.put(self.attempt())
                emitted += 1
        finally:
            self.session.close()
        logger.debug(f"Client {self.worker_id} finished {emitted} requests")
        return emitted

    def attempt(self) -> Outcome:
        try:
            response = self.dispatch()
        except NetworkError as e:
            return Outcome(Category.NETWORK, str(e))

        try:
            content = self.read_body(response)
        except BadStatusError as e:
            logger.debug("Error reading body of the response!")
            return Outcome(Category.BAD, str(e))

        text = decode_body(response, content)
        if is_success(response.status_code):
            return Outcome(Category.SUCCESS, text)
        return Outcome(Category.BAD, text)

    def dispatch(self) -> requests.Response:
        request = requests.Request(
            self.template.method,
            self.template.url,
            headers=self.template.header_dict(),
            data=self.template.open_body(),
        )
        try:
            prepared = self.session.prepare_request(request)
            return self.policy.send(self.session, prepared)
        except requests.exceptions.Timeout as e:
            logger.debug(f"Client {self.worker_id} timed out: {e}")
            raise NetworkError(str(e)) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(str(e)) from e

    @staticmethod
    def read_body(response: requests.Response) -> bytes:
        try:
            return response.content
        except requests.exceptions.RequestException as e:
            raise BadStatusError(str(e)) from e
        finally:
            response.close()
