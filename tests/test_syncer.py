"""Tests for the sync cycle and the poll scheduler."""

import io
from datetime import timedelta

import httpx
from rich.console import Console

from chansync.syncer import PollScheduler, SyncCycle
from chansync.worker import FetchPool, SyncCycleOutcome

THREAD_URL = "https://boards.4chan.org/wg/thread/6872254"
PAGE = (
    '<a href="//i.4cdn.org/wg/111.jpg">111.jpg</a><a href="//i.4cdn.org/wg/111.jpg"><img></a>'
    '<a href="//i.4cdn.org/wg/222.png">222.png</a><a href="//i.4cdn.org/wg/222.png"><img></a>'
)


def _site(page=PAGE, page_status=200):
    calls = []

    def handler(request):
        calls.append(str(request.url))
        if str(request.url) == THREAD_URL:
            return httpx.Response(page_status, text=page)
        return httpx.Response(200, content=b"media:" + request.url.path.encode())

    return handler, calls


def _cycle(client, ledger, directory, concurrency=2):
    return SyncCycle(client, FetchPool(client, ledger, concurrency), THREAD_URL, directory)


class TestSyncCycle:
    def test_downloads_every_linked_file(self, tmp_path, ledger, make_client):
        handler, calls = _site()
        outcome = _cycle(make_client(handler), ledger, tmp_path).run_once()

        assert outcome.as_dict() == {"links": 2, "downloaded": 2, "skipped": 0, "failed": 0}
        assert (tmp_path / "111.jpg").read_bytes() == b"media:/wg/111.jpg"
        assert (tmp_path / "222.png").exists()
        assert outcome.elapsed >= timedelta(0)

    def test_second_run_downloads_nothing(self, tmp_path, ledger, make_client):
        handler, calls = _site()
        cycle = _cycle(make_client(handler), ledger, tmp_path)

        cycle.run_once()
        media_calls = len(calls) - 1
        second = cycle.run_once()

        assert second.downloaded == 0
        assert second.skipped == 2
        assert len(calls) - 2 == media_calls

    def test_page_error_is_an_empty_cycle(self, tmp_path, ledger, make_client):
        handler, calls = _site(page_status=404)
        outcome = _cycle(make_client(handler), ledger, tmp_path).run_once()

        assert outcome.as_dict() == {"links": 0, "downloaded": 0, "skipped": 0, "failed": 0}
        assert calls == [THREAD_URL]

    def test_page_transport_error_is_an_empty_cycle(self, tmp_path, ledger, make_client):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        outcome = _cycle(make_client(handler), ledger, tmp_path).run_once()
        assert outcome.links_seen == 0

    def test_progress_bar_run(self, tmp_path, ledger, make_client):
        handler, _ = _site()
        client = make_client(handler)
        cycle = SyncCycle(client, FetchPool(client, ledger), THREAD_URL, tmp_path, show_progress=True)
        assert cycle.run_once().downloaded == 2

    def test_progress_bar_draws_on_given_console(self, tmp_path, ledger, make_client):
        handler, _ = _site()
        client = make_client(handler)
        out = io.StringIO()
        console = Console(file=out, force_terminal=True, width=100)
        cycle = SyncCycle(client, FetchPool(client, ledger), THREAD_URL, tmp_path, show_progress=True, console=console)

        assert cycle.run_once().downloaded == 2
        assert out.getvalue() != ""


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeCycle:
    """Stands in for SyncCycle; each run advances the clock by the next duration."""

    def __init__(self, clock, durations):
        self.clock = clock
        self.durations = list(durations)
        self.runs = 0

    def run_once(self):
        self.clock.now += self.durations[self.runs] if self.runs < len(self.durations) else self.durations[-1]
        self.runs += 1
        return SyncCycleOutcome()


def _scheduler(cycle, clock, **kwargs):
    return PollScheduler(cycle, clock=clock, sleep=clock.sleep, **kwargs)


class TestPollScheduler:
    def test_single_shot(self):
        clock = FakeClock()
        cycle = FakeCycle(clock, [10])
        outcomes = _scheduler(cycle, clock, reload=False, budget=timedelta(hours=5)).run()
        assert cycle.runs == 1
        assert len(outcomes) == 1
        assert clock.sleeps == []

    def test_zero_budget_runs_once(self):
        clock = FakeClock()
        cycle = FakeCycle(clock, [0])
        _scheduler(cycle, clock, reload=True, budget=timedelta(0)).run()
        assert cycle.runs == 1
        assert clock.sleeps == []

    def test_sleeps_for_the_rest_of_the_interval(self):
        clock = FakeClock()
        cycle = FakeCycle(clock, [60])
        _scheduler(cycle, clock, reload=True, interval=timedelta(minutes=5), budget=timedelta(minutes=12)).run()

        # cycles start at 0, 300, 600 and 900; the fourth ends past the budget
        assert clock.sleeps == [240, 240, 240]
        assert cycle.runs == 4

    def test_long_cycle_starts_next_immediately(self):
        clock = FakeClock()
        cycle = FakeCycle(clock, [400, 400, 100])
        _scheduler(cycle, clock, reload=True, interval=timedelta(minutes=5), budget=timedelta(minutes=15)).run()

        # ends at 400, 800 without sleeping, then 900 >= budget
        assert clock.sleeps == []
        assert cycle.runs == 3

    def test_budget_is_a_soft_ceiling(self):
        clock = FakeClock()
        cycle = FakeCycle(clock, [10, 1000])
        _scheduler(cycle, clock, reload=True, interval=timedelta(seconds=20), budget=timedelta(seconds=100)).run()

        assert cycle.runs == 2
        assert clock.now == 1020
