"""
Scheduled monitoring of the pool's read-only fields.
"""

import time
import logging
from typing import Callable, Dict, List, Optional

import schedule

from .errors import SnippetError
from .interactor import LiquidityPoolInteractor

logger = logging.getLogger(__name__)


class PoolWatcher:
    def __init__(self, interactor: LiquidityPoolInteractor, scheduler: Optional[schedule.Scheduler] = None):
        self.interactor = interactor
        self.scheduler = scheduler or schedule.Scheduler()
        self.checks = 0
        self.failed_checks = 0
        self.last_values: Dict[str, List[str]] = {}

    def check_pool(self):
        """Run the three pool queries once and log what they return"""
        self.checks += 1
        queries: Dict[str, Callable] = {
            "poolAsset": self.interactor.get_pool_asset,
            "lendToken": self.interactor.get_lend_token,
            "borrowToken": self.interactor.get_borrow_token,
        }
        for name, query in queries.items():
            try:
                result = query()
            except SnippetError as e:
                logger.error(f"Query {name} failed: {e}")
                self.failed_checks += 1
                continue

            if not result.ok:
                logger.warning(f"Query {name} exited with status {result.returncode}")
                self.failed_checks += 1
                continue

            values = result.as_text()
            previous = self.last_values.get(name)
            if previous is not None and previous != values:
                logger.info(f"{name} changed: {previous} -> {values}")
            else:
                logger.info(f"{name}: {values}")
            self.last_values[name] = values

    def run(self, every_seconds: int = 60, iterations: Optional[int] = None,
            sleep: Callable[[float], None] = time.sleep):
        """Check immediately, then every ``every_seconds`` until ``iterations`` checks ran"""
        self.scheduler.every(every_seconds).seconds.do(self.check_pool)

        logger.info("Running initial pool check...")
        self.check_pool()
        logger.info(f"Watching pool every {every_seconds}s...")

        try:
            while iterations is None or self.checks < iterations:
                self.scheduler.run_pending()
                sleep(1)
        finally:
            self.scheduler.clear()
        logger.info(f"Watch finished after {self.checks} checks ({self.failed_checks} failed queries)")


def watch_queries(interactor: LiquidityPoolInteractor, every_seconds: int = 60,
                  iterations: Optional[int] = None) -> PoolWatcher:
    watcher = PoolWatcher(interactor)
    watcher.run(every_seconds=every_seconds, iterations=iterations)
    return watcher
