#!/usr/bin/env python3
"""spotter: hit one URL with many concurrent clients and count the outcomes.

Usage: spotter [flags] URL
"""

import argparse
import signal
import sys
from typing import List, Optional

from spotter import config
from spotter.collector import CategorizedBodies
from spotter.exceptions import SpotterError
from spotter.orchestrator import install_interrupt_handler, run_load, template_from_settings
from spotter.report import confirm_overwrite, output_exists, print_summary, write_output

OBNOXIOUS_HEADER = r"""
 ______     ______   ______     ______   ______   ______     ______
/\  ___\   /\  == \ /\  __ \   /\__  _\ /\__  _\ /\  ___\   /\  == \
\ \___  \  \ \  _-/ \ \ \/\ \  \/_/\ \/ \/_/\ \/ \ \  __\   \ \  __<
 \/\_____\  \ \_\    \ \_____\    \ \_\    \ \_\  \ \_____\  \ \_\ \_\
  \/_____/   \/_/     \/_____/     \/_/     \/_/   \/_____/   \/_/ /_/"""


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="spotter", description="HTTP load generator")
    ap.add_argument("-requests", "--requests", dest="requests", type=int, default=1,
                    help="Number of requests")
    ap.add_argument("-clients", "--clients", dest="clients", type=int, default=1,
                    help="Number of workers")
    ap.add_argument("-type", "--type", dest="method", default="GET",
                    help="HTTP Request Type")
    ap.add_argument("-data", "--data", dest="data", default="",
                    help="The Request Data, or @file to send a file")
    ap.add_argument("-output", "--output", dest="output", default="",
                    help="The Output File Location")
    ap.add_argument("-header", "--header", dest="headers", action="append", default=[],
                    help="The Request Headers (key:value, repeatable)")
    ap.add_argument("-reqTimeout", "--reqTimeout", dest="request_timeout",
                    default=config.DEFAULT_REQUEST_TIMEOUT,
                    help="Timeout Per Request (e.g. 500ms, 30s, 1m)")
    ap.add_argument("-redirects", "--redirects", dest="redirects", type=int,
                    default=config.DEFAULT_REDIRECTS,
                    help="Number of redirects to allow. -1 means no follow.")
    ap.add_argument("-keepAlive", "--keepAlive", dest="keep_alive",
                    default=config.DEFAULT_KEEP_ALIVE,
                    help="TCP keep-alive interval")
    ap.add_argument("-maxIdle", "--maxIdle", dest="max_idle", type=int,
                    default=config.DEFAULT_MAX_IDLE,
                    help="Pooled connections kept per host")
    ap.add_argument("-verify", "--verify", dest="tls_verify", action="store_true",
                    help="Verify TLS certificates")
    ap.add_argument("-version", "--version", dest="version", action="store_true",
                    help="Version")
    ap.add_argument("-dev", "--dev", dest="dev", action="store_true",
                    help="Logging internals for dev use")
    ap.add_argument("-oh", "--oh", dest="obnoxious", action="store_true",
                    help="Displays a reallllly obnoxious header.(Please don't use this)")
    ap.add_argument("url", nargs="*", help="Target URL")
    return ap


def settings_from_args(args: argparse.Namespace) -> config.Settings:
    return config.Settings(
        url=args.url[0],
        requests=args.requests,
        clients=args.clients,
        method=args.method,
        data=args.data,
        output=args.output,
        headers=tuple(args.headers),
        request_timeout=config.parse_duration(args.request_timeout),
        redirects=args.redirects,
        keep_alive=config.parse_duration(args.keep_alive),
        max_idle_per_host=args.max_idle,
        tls_verify=args.tls_verify,
        dev=args.dev,
    )


def save_report(location: str, bodies: CategorizedBodies) -> int:
    """Write the report file; only a declined overwrite changes the exit status."""
    if output_exists(location):
        try:
            overwrite = confirm_overwrite(location)
        except EOFError:
            overwrite = False
        if not overwrite:
            print("[SPOTTER]: Exiting since you are being difficult...")
            return 1
    try:
        write_output(location, bodies)
    except OSError as e:
        print(f"[SPOTTER]: Couldn't Write Output File: {e}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    if args.version:
        print(f"[SPOTTER]:\nVersion: {config.VERSION}\nBuild: {config.BUILD}")
        return 0

    if args.obnoxious:
        print(OBNOXIOUS_HEADER)

    if len(args.url) != 1:
        ap.print_help(sys.stderr)
        return 1

    config.setup_logging(args.dev)

    try:
        settings = settings_from_args(args)
        settings.validate()
        template = template_from_settings(settings)
    except SpotterError as e:
        print(f"[SPOTTER]: {e}")
        return 1

    print(f"[SPOTTER]: Starting tests with {settings.clients} clients "
          f"and {settings.requests} requests per client")
    previous = install_interrupt_handler()
    try:
        result = run_load(settings, template)
    finally:
        if previous is not None:
            signal.signal(signal.SIGINT, previous)

    if settings.output and save_report(settings.output, result.bodies):
        return 1

    print_summary(result.report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
