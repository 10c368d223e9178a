"""Console summary and the optional JSON report file."""

import json
import logging
import os
from typing import Callable, Optional

from spotter.collector import AggregateReport, CategorizedBodies

logger = logging.getLogger(__name__)


def format_summary(report: AggregateReport) -> str:
    lines = [
        "RESULTS:",
        f"- Request Number: {report.total}",
        f"- Successful: {report.success}",
        f"- Network Failed: {report.network_failed}",
        f"- Bad Failed: {report.bad_failed}",
        f"- Requests Per Second: {report.requests_per_second:10f}",
        f"- Program took: {report.elapsed:10f} second(s)",
    ]
    return "\n".join(lines)


def print_summary(report: AggregateReport) -> None:
    print(format_summary(report))


def confirm_overwrite(location: str, ask: Optional[Callable[[str], str]] = None) -> bool:
    """Ask until the user answers y or n (case-insensitive)."""
    if ask is None:
        ask = input
    print(f"\n[SPOTTER]: File {location} Exists!")
    while True:
        answer = ask("[SPOTTER]: Overwrite file? (y/n): ").strip().lower()
        if answer == "n":
            return False
        if answer == "y":
            return True


def serialize(bodies: CategorizedBodies) -> str:
    return json.dumps(bodies.to_json())


def write_output(location: str, bodies: CategorizedBodies) -> None:
    """Write the categorized bodies as JSON; OSError propagates to the caller."""
    payload = serialize(bodies)
    with open(location, "w", encoding="utf-8") as f:
        f.write(payload)
    logger.debug(f"Wrote {len(payload)} bytes to {location}")


def output_exists(location: str) -> bool:
    return os.path.exists(location)
