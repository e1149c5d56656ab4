#!/usr/bin/env python3
"""
Main entry point for the spider crawler.
"""

import asyncio
import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from spider import __version__
from spider.utils.config import load_config, validate_config, Config
from spider.utils.logger import setup_logging, log_system_info
from spider.crawler.context import CrawlContext, create_context, close_context
from spider.crawler.frontier import CrawlTask, load_seed_file
from spider.crawler.scheduler import CrawlerScheduler


class CrawlerApp:
    """Main application class for the crawler."""

    def __init__(self):
        self.context: Optional[CrawlContext] = None
        self.logger = logging.getLogger(__name__)

    def setup_signal_handlers(self):
        """Turn SIGINT/SIGTERM into the crawl stop signal."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum):
            self.logger.info(f"Received signal {signum}, initiating shutdown...")
            if self.context:
                self.context.stop()

        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, signal_handler, signum)
            except NotImplementedError:
                # Windows event loops do not support signal handlers
                pass

    def load_seeds(self, config: Config) -> List[CrawlTask]:
        seeds = []
        if config.crawler.seed_file:
            seeds.extend(load_seed_file(config.crawler.seed_file))
        seeds.extend(CrawlTask.seed(url) for url in config.crawler.seed_urls)
        return seeds

    async def run(self, config: Config, dry_run: bool = False) -> int:
        """Run the crawler."""
        try:
            self.logger.info("=== SPIDER STARTING ===")
            log_system_info()
            self.logger.info(f"Seed file: {config.crawler.seed_file}")
            self.logger.info(f"Max depth: {config.crawler.max_depth}")
            self.logger.info(f"Workers: {config.crawler.max_workers}")
            self.logger.info(f"Database type: {config.database.type}")

            seeds = self.load_seeds(config)
            self.logger.info(f"Loaded {len(seeds)} seed URLs")

            self.context = await create_context(config)
            self.setup_signal_handlers()

            if dry_run:
                self.logger.info("DRY RUN MODE: No actual crawling will be performed")
                await self._dry_run(seeds)
                return 0

            scheduler = CrawlerScheduler(self.context)
            await scheduler.run(seeds)

        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            if self.context:
                await close_context(self.context)
            self.logger.info("=== SPIDER FINISHED ===")

        return 0

    async def _dry_run(self, seeds: List[CrawlTask]):
        """Check the store and fetch the first seed without indexing anything."""
        stats = await self.context.database.get_stats()
        self.logger.info(f"✓ Store reachable: {stats}")

        if seeds:
            result = await self.context.fetcher.fetch(seeds[0].url)
            if result.error:
                self.logger.warning(f"Test fetch failed: {result.error}")
            else:
                self.logger.info(f"✓ Test fetch successful: {result.status_code} {result.title or ''}")

        self.logger.info("Dry run completed")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Breadth-first crawler and inverted index builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                           # Run with default config.yaml
  python main.py --config my_config.yaml   # Run with custom config
  python main.py --seeds spider_root.txt   # Override the seed file
  python main.py --max-duration 3600       # Run for 1 hour max
  python main.py --dry-run                 # Test configuration only
        """
    )

    parser.add_argument(
        '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )

    parser.add_argument(
        '--seeds',
        help='Newline-delimited seed file (overrides crawler.seed_file)'
    )

    parser.add_argument(
        '--max-depth',
        type=int,
        help='Maximum link hops from a seed'
    )

    parser.add_argument(
        '--workers',
        type=int,
        help='Number of concurrent workers'
    )

    parser.add_argument(
        '--max-duration',
        type=int,
        help='Maximum crawl duration in seconds'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Test configuration without actually crawling'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'spider {__version__}'
    )

    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    if args.seeds:
        config.crawler.seed_file = args.seeds
    if args.max_depth is not None:
        config.crawler.max_depth = args.max_depth
    if args.workers is not None:
        config.crawler.max_workers = args.workers
    if args.max_duration is not None:
        config.crawler.max_duration = args.max_duration
    validate_config(config)
    return config


def main():
    """Main entry point."""
    args = build_parser().parse_args()

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found.")
        print("Please create a config.yaml file or specify a different path with --config")
        return 1

    try:
        config = apply_overrides(load_config(args.config, validate=False), args)
    except (ValueError, TypeError) as e:
        print(f"Error: invalid configuration: {e}")
        return 1

    setup_logging(config.logging)

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(config, dry_run=args.dry_run))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
