"""Protean Engine runner for the delivery domain.

In production, events are processed asynchronously: the Engine publishes
outbox records to Redis Streams and feeds the agent dashboard projector.

Usage:
    PROTEAN_ENV=production python src/server.py
    python src/server.py --test-mode   # drain pending messages once and exit
"""

import argparse

from protean.server.engine import Engine


def build_engine(test_mode: bool = False) -> Engine:
    from delivery.domain import delivery
    from delivery.utils.logging import configure_logging

    configure_logging()
    delivery.init()
    return Engine(delivery, test_mode=test_mode)


def main():
    parser = argparse.ArgumentParser(description="Campus Dispatch Engine runner")
    parser.add_argument("--test-mode", action="store_true", help="Process pending messages once and exit")
    args = parser.parse_args()

    build_engine(test_mode=args.test_mode).run()


if __name__ == "__main__":
    main()
