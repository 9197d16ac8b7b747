"""Tests for the single-flight analysis coalescer."""

from __future__ import annotations

import asyncio
import threading

import pytest

from hdi.core.scheduling.coalescer import AnalysisCoalescer


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _wait_for(event: threading.Event) -> None:
    while not event.is_set():
        await asyncio.sleep(0.001)


class TestAnalysisCoalescer:
    def test_single_request_runs_once(self):
        coalescer = AnalysisCoalescer()

        async def _check():
            return await coalescer.run("diary", lambda: 42)

        assert _run(_check()) == 42
        assert coalescer.stats.passes == 1
        assert not coalescer.is_running("diary")

    def test_requests_during_a_pass_collapse_into_one_rerun(self):
        coalescer = AnalysisCoalescer()
        started = threading.Event()
        release = threading.Event()
        calls: list[str] = []

        def first():
            calls.append("first")
            started.set()
            release.wait(timeout=5)
            return "first"

        def make(name):
            def job():
                calls.append(name)
                return name
            return job

        async def _check():
            leader = asyncio.ensure_future(coalescer.run("diary", first))
            await _wait_for(started)
            followers = [
                asyncio.ensure_future(coalescer.run("diary", make("second"))),
                asyncio.ensure_future(coalescer.run("diary", make("third"))),
            ]
            await asyncio.sleep(0.01)
            assert coalescer.is_running("diary")
            release.set()
            return await asyncio.gather(leader, *followers)

        results = _run(_check())
        assert calls == ["first", "third"]
        assert results == ["third", "third", "third"]
        assert coalescer.stats.passes == 2
        assert coalescer.stats.coalesced == 2

    def test_subjects_run_independently(self):
        coalescer = AnalysisCoalescer()

        async def _check():
            return await asyncio.gather(
                coalescer.run("alice", lambda: "a"),
                coalescer.run("bob", lambda: "b"),
            )

        assert _run(_check()) == ["a", "b"]
        assert coalescer.stats.coalesced == 0

    def test_distinct_dates_never_share_a_pass(self):
        coalescer = AnalysisCoalescer()
        started = threading.Event()
        release = threading.Event()

        def slow():
            started.set()
            release.wait(timeout=5)
            return "2026-03-30"

        async def _check():
            first = asyncio.ensure_future(coalescer.run("manual:2026-03-30", slow))
            await _wait_for(started)
            second = asyncio.ensure_future(
                coalescer.run("manual:2026-03-31", lambda: "2026-03-31")
            )
            await asyncio.sleep(0.01)
            release.set()
            return await asyncio.gather(first, second)

        assert _run(_check()) == ["2026-03-30", "2026-03-31"]
        assert coalescer.stats.coalesced == 0

    def test_errors_propagate_and_release_the_subject(self):
        coalescer = AnalysisCoalescer()

        def boom():
            raise RuntimeError("analysis failed")

        async def _check():
            with pytest.raises(RuntimeError, match="analysis failed"):
                await coalescer.run("diary", boom)
            return await coalescer.run("diary", lambda: "recovered")

        assert _run(_check()) == "recovered"
        assert coalescer.stats.in_flight == set()
