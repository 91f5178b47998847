#!/usr/bin/env python3
"""
RQ Worker for matching history writes.

Usage:
    python -m history.worker
    python -m history.worker --burst
    python -m history.worker --verbose
"""

import os
import sys
import argparse
import logging

from redis import Redis
from rq import Worker

from core.config_loader import load_config
from database.database import configure_database

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def start_worker(burst: bool = False, queues: list = None, config_path: str = "config.yaml"):
    """Start the RQ worker."""
    config = load_config(config_path)
    configure_database(config.database.url)

    redis_url = config.history.redis_url or os.environ.get('REDIS_URL', 'redis://localhost:6379/0')
    if queues is None:
        queues = [config.history.queue_name]

    logger.info(f"Starting history worker on queues: {', '.join(queues)} (burst={burst})")

    try:
        redis_conn = Redis.from_url(redis_url)
        redis_conn.ping()
        worker = Worker(queues, connection=redis_conn)
        worker.work(burst=burst)
    except KeyboardInterrupt:
        logger.info("Worker stopped")
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(description='Matching history worker')
    parser.add_argument('--burst', action='store_true', help='Process all and exit')
    parser.add_argument('--queues', nargs='+', default=None)
    parser.add_argument('--config', default='config.yaml')
    parser.add_argument('--verbose', action='store_true')

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    start_worker(burst=args.burst, queues=args.queues, config_path=args.config)


if __name__ == '__main__':
    main()
