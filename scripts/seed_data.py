#!/usr/bin/env python3
"""Seed a ChocAn store with synthetic members, providers and services.

Creates the PostgreSQL tables (``--store postgres``) and, unless
``--skip-kafka`` is given, declares the notification topics.
"""

import argparse

from chocan.config import ChocAnConfig
from chocan.exceptions import ChocAnError
from chocan.generators import seed_store
from chocan.logging import get_logger, setup_logging
from chocan.messaging import KafkaPublisher
from chocan.store import InMemoryRecordStore, PostgresRecordStore

logger = get_logger("chocan.scripts.seed_data")


def main() -> int:
    """Main entry point."""
    config = ChocAnConfig.from_env()

    parser = argparse.ArgumentParser(description="Seed a ChocAn store with synthetic data")
    parser.add_argument("--members", type=int, default=100, help="Number of members")
    parser.add_argument("--providers", type=int, default=20, help="Number of providers")
    parser.add_argument("--products", type=int, default=10, help="Number of services")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument(
        "--store",
        choices=["memory", "postgres"],
        default=config.store_backend,
        help="Record store to seed (memory is a dry run)",
    )
    parser.add_argument(
        "--postgres-url",
        type=str,
        default=config.postgres.connection_string,
        help="PostgreSQL connection string",
    )
    parser.add_argument("--skip-kafka", action="store_true", help="Do not declare Kafka topics")
    parser.add_argument("--log-level", type=str, default=config.log_level)
    args = parser.parse_args()

    setup_logging(level=args.log_level, format_type=config.log_format)

    if args.store == "postgres":
        store = PostgresRecordStore(args.postgres_url)
    else:
        store = InMemoryRecordStore()

    try:
        if isinstance(store, PostgresRecordStore):
            store.create_tables()

        added = seed_store(
            store,
            members=args.members,
            providers=args.providers,
            products=args.products,
            seed=args.seed,
        )

        if not args.skip_kafka:
            publisher = KafkaPublisher(config.channels, config.kafka)
            for channel_key in config.channels:
                channel = publisher.declare(channel_key)
                logger.info("Channel %s ready on topic %s", channel_key, channel.topic)
    except ChocAnError as e:
        logger.error("Seeding failed: %s", e)
        return 1

    logger.info("=" * 60)
    for collection, count in added.items():
        logger.info("  %-10s %d", collection, count)
    logger.info("=" * 60)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
