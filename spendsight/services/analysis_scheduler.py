"""
Analysis Scheduler
Re-runs the analysis when data changes (debounced) and on a fixed interval
"""

import asyncio
import contextlib
from typing import Awaitable, Callable, List, Optional

import structlog

from spendsight.config import settings
from spendsight.schemas.analysis import AnalysisResult
from spendsight.schemas.transaction import Transaction
from spendsight.services.analysis import AnalysisEngine

logger = structlog.get_logger(__name__)

TransactionFetcher = Callable[[], Awaitable[List[Transaction]]]
ResultCallback = Callable[[AnalysisResult], None]

class AnalysisScheduler:
    """
    Two independent triggers around the same analyze() call:

    - notify_changed(): debounced, a burst of changes runs one analysis
    - start(): periodic re-analysis every interval_seconds

    The analysis itself runs in a worker thread so the event loop stays free.
    """

    def __init__(
        self,
        engine: AnalysisEngine,
        fetch_transactions: TransactionFetcher,
        on_result: Optional[ResultCallback] = None,
        debounce_seconds: float = None,
        interval_seconds: float = None
    ):
        self.engine = engine
        self.fetch_transactions = fetch_transactions
        self.on_result = on_result
        self.debounce_seconds = (
            settings.ANALYSIS_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        )
        self.interval_seconds = (
            settings.ANALYSIS_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        )

        self.latest_result: Optional[AnalysisResult] = None
        self.runs = 0
        self._debounce_task: Optional[asyncio.Task] = None
        self._periodic_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._periodic_task is not None and not self._periodic_task.done()

    async def run_once(self) -> Optional[AnalysisResult]:
        """Fetch the current transactions and analyze them"""
        try:
            transactions = await self.fetch_transactions()
        except Exception:
            logger.exception("Fetching transactions for analysis failed")
            return None

        result = await asyncio.to_thread(self.engine.analyze, transactions)
        self.latest_result = result
        self.runs += 1

        if self.on_result is not None:
            try:
                self.on_result(result)
            except Exception:
                logger.exception("Analysis result callback failed")

        return result

    def notify_changed(self):
        """Schedule an analysis after the debounce delay, replacing any pending one"""
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = asyncio.create_task(self._debounced_run())

    async def _debounced_run(self):
        await asyncio.sleep(self.debounce_seconds)
        await self.run_once()

    async def _periodic_loop(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception:
                logger.exception("Periodic analysis failed")

    def start(self):
        if self.is_running:
            return
        self._periodic_task = asyncio.create_task(self._periodic_loop())
        logger.info("Analysis scheduler started", interval_seconds=self.interval_seconds)

    async def stop(self):
        for task in (self._debounce_task, self._periodic_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._debounce_task = None
        self._periodic_task = None
        logger.info("Analysis scheduler stopped")
