import asyncio

from spendsight.services.analysis import AnalysisEngine, minimal_analysis
from spendsight.services.analysis_scheduler import AnalysisScheduler

class CountingEngine:
    """Stands in for AnalysisEngine and records each call"""

    def __init__(self):
        self.calls = []

    def analyze(self, transactions):
        self.calls.append(list(transactions))
        return minimal_analysis()

def fetcher(transactions):
    async def fetch():
        return transactions
    return fetch

def test_run_once_analyzes_and_notifies(food_spike_transactions):
    received = []
    scheduler = AnalysisScheduler(
        AnalysisEngine(seed=3, warm_start=False),
        fetcher(food_spike_transactions),
        on_result=received.append
    )

    result = asyncio.run(scheduler.run_once())

    assert result is not None
    assert not result.is_minimal
    assert scheduler.latest_result is result
    assert scheduler.runs == 1
    assert received == [result]

def test_run_once_survives_fetch_failure():
    async def broken_fetch():
        raise ConnectionError("database unavailable")

    engine = CountingEngine()
    scheduler = AnalysisScheduler(engine, broken_fetch)

    assert asyncio.run(scheduler.run_once()) is None
    assert scheduler.runs == 0
    assert engine.calls == []

def test_burst_of_changes_runs_once():
    engine = CountingEngine()
    scheduler = AnalysisScheduler(engine, fetcher([]), debounce_seconds=0.05)

    async def burst():
        for _ in range(5):
            scheduler.notify_changed()
            await asyncio.sleep(0.001)
        await scheduler._debounce_task
        await scheduler.stop()

    asyncio.run(burst())

    assert len(engine.calls) == 1
    assert scheduler.runs == 1

def test_periodic_loop_start_and_stop():
    engine = CountingEngine()
    scheduler = AnalysisScheduler(engine, fetcher([]), interval_seconds=0.01)

    async def run_for_a_while():
        scheduler.start()
        scheduler.start()
        assert scheduler.is_running
        await asyncio.sleep(0.2)
        await scheduler.stop()

    asyncio.run(run_for_a_while())

    assert scheduler.runs >= 1
    assert not scheduler.is_running

def test_failing_callback_is_logged_not_raised():
    def explode(result):
        raise RuntimeError("subscriber gone")

    engine = CountingEngine()
    scheduler = AnalysisScheduler(engine, fetcher([]), on_result=explode, debounce_seconds=0.01)

    async def change():
        scheduler.notify_changed()
        await scheduler._debounce_task

    asyncio.run(change())

    assert scheduler.runs == 1
    assert scheduler.latest_result is not None
