"""
Owns the worker pool: spawns one thread per client, waits on the barrier,
times the run and aggregates the results.
"""

import logging
import os
import signal
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Optional

from spotter.collector import AggregateReport, CategorizedBodies, ResultCollector, aggregate
from spotter.config import Settings
from spotter.request_template import RequestTemplate, build_request_template
from spotter.transport import TransportPolicy
from spotter.worker import Worker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    report: AggregateReport
    bodies: CategorizedBodies


def policy_from_settings(settings: Settings) -> TransportPolicy:
    return TransportPolicy(
        tls_verify=settings.tls_verify,
        request_timeout=settings.request_timeout,
        max_redirects=settings.redirects,
        keep_alive=settings.keep_alive,
        max_idle_per_host=settings.max_idle_per_host,
    )


def template_from_settings(settings: Settings) -> RequestTemplate:
    return build_request_template(settings.method, settings.data, settings.headers, settings.url)


def run_load(settings: Settings, template: Optional[RequestTemplate] = None) -> RunResult:
    """Run clients * requests attempts and return the aggregated result.

    Startup errors (bad counts, URL, headers or body file) are raised before
    any worker starts.
    """
    settings.validate()
    if template is None:
        template = template_from_settings(settings)
    policy = policy_from_settings(settings)
    collector = ResultCollector(capacity=settings.total_requests)

    workers = [
        Worker(i, template, policy, settings.requests, collector)
        for i in range(settings.clients)
    ]

    start = time.perf_counter()
    with ThreadPoolExecutor(max_workers=settings.clients, thread_name_prefix="spotter-client") as executor:
        futures = []
        for worker in workers:
            logger.debug(f"Starting client: {worker.worker_id}")
            futures.append(executor.submit(worker.run))

        print("[SPOTTER]: Drum roll please...")
        logger.debug(f"Waiting for {settings.clients} clients to finish...")
        wait(futures)
        elapsed = time.perf_counter() - start

        for future in futures:
            # a worker only fails here on a bug, never on a request error
            future.result()

    collector.close()
    bodies = collector.drain()
    return RunResult(report=aggregate(bodies, elapsed), bodies=bodies)


def _exit_on_interrupt(signum, frame):
    print("[SPOTTER]: Exiting on interrupt...", flush=True)
    os._exit(0)


def install_interrupt_handler():
    """Terminate immediately on Ctrl-C; in-flight requests and results are dropped.

    Returns the previous SIGINT handler.
    """
    return signal.signal(signal.SIGINT, _exit_on_interrupt)
