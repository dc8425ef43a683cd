#!/usr/bin/env python3
"""
Main entry point for the documentation crawler.
"""

import asyncio
import logging
import sys
from typing import Optional

from docs_crawler.utils.config import Config, ConfigurationError, config_to_dict, load_config
from docs_crawler.utils.logger import setup_logging
from docs_crawler.crawler.fetcher import IndexFetcher, IndexFetchError
from docs_crawler.crawler.scheduler import CrawlerScheduler
from docs_crawler.storage.artifacts import StorageError

CONFIG_PATH = 'config.yaml'


class CrawlerApp:
    """Main application class for the documentation crawler."""

    def __init__(self, config_path: str = CONFIG_PATH):
        self.config_path = config_path
        self.scheduler: Optional[CrawlerScheduler] = None
        self.logger = logging.getLogger(__name__)

    def setup_logging(self, config: Config):
        """Setup logging configuration."""
        setup_logging(config_to_dict(config), enable_json=config.logging.json)

    async def run(self, namespace: str) -> int:
        """Run the crawler for one documentation namespace."""
        try:
            config = load_config(self.config_path)
            self.setup_logging(config)

            self.logger.info(f"Starting crawl for topic: {namespace}")
            self.logger.info(f"Max concurrent pages: {config.crawler.concurrency_limit}")
            self.logger.info(f"Batch delay: {config.crawler.batch_delay}s")

            async with IndexFetcher(
                index_url_template=config.crawler.index_url_template,
                user_agent=config.crawler.user_agent,
                request_timeout=config.crawler.index_timeout
            ) as fetcher:
                seeds = await fetcher.fetch_seeds(namespace, config.crawler.site_origin)

            self.scheduler = CrawlerScheduler(config, namespace)
            await self.scheduler.initialize()
            await self.scheduler.start_crawling(seeds)

        except ConfigurationError as e:
            self.logger.error(f"Configuration error: {e}")
            return 1

        except IndexFetchError as e:
            self.logger.error(f"Request failed: {e}")
            return 1

        except StorageError as e:
            self.logger.error(f"Storage error: {e}")
            return 1

        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            if self.scheduler:
                await self.scheduler.close()

        return 0


def prompt_namespace() -> str:
    """Ask for the documentation namespace until a non-empty one is given."""
    namespace = ''
    while not namespace:
        namespace = input('Please enter the topic name to crawl: ').strip()
    return namespace


def main():
    """Main entry point."""
    try:
        namespace = prompt_namespace()
        return asyncio.run(CrawlerApp().run(namespace))
    except (KeyboardInterrupt, EOFError):
        print("\nInterrupted by user")
        return 1
    except Exception as e:
        print(f"Fatal error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
