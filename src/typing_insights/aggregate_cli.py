"""Trigger the weakness aggregation job from a scheduler (cron, systemd timer, CI).

Usage:
    typing-insights-aggregate --url http://localhost:8000 --token "$CRON_AUTH_TOKEN"
"""

import argparse
import logging
import os
import sys

import requests

from .logging_setup import setup_logging

log = logging.getLogger(__name__)

TRIGGER_PATH = "/api/cron/calculate-weaknesses"


def trigger(url: str, token: str | None, timeout: float) -> dict:
    """Call the aggregation trigger and return its JSON summary."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    response = requests.post(url.rstrip("/") + TRIGGER_PATH, headers=headers, timeout=timeout)
    response.raise_for_status()
    return response.json()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Recompute weakness profiles")
    parser.add_argument(
        "--url",
        default=os.environ.get("TYPING_INSIGHTS_URL", "http://localhost:8000"),
        help="Base URL of the Typing Insights API",
    )
    parser.add_argument(
        "--token",
        default=os.environ.get("CRON_AUTH_TOKEN"),
        help="Shared secret (defaults to $CRON_AUTH_TOKEN)",
    )
    parser.add_argument("--timeout", type=float, default=300.0, help="Request timeout (s)")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    setup_logging(log_level=args.log_level)
    try:
        result = trigger(args.url, args.token, args.timeout)
    except requests.RequestException as e:
        log.error("Aggregation trigger failed: %s", e)
        return 1

    log.info(
        "Processed %s of %s users (%s failed)",
        result.get("processedUsers"), result.get("usersFound"), result.get("failedUsers"),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
