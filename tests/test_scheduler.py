"""Tests for the virtual and timer schedulers."""

import threading
from datetime import timedelta

import pytest

from codechat.scheduler import TimerScheduler, VirtualScheduler, build_scheduler


class TestVirtualScheduler:
    def test_nothing_fires_before_due(self, scheduler):
        fired = []
        scheduler.schedule(1.0, lambda: fired.append("a"))
        scheduler.advance(0.999)
        assert fired == []
        scheduler.advance(0.001)
        assert fired == ["a"]

    def test_fires_in_due_order_not_submission_order(self, scheduler):
        fired = []
        scheduler.schedule(2.0, lambda: fired.append("slow"))
        scheduler.schedule(0.5, lambda: fired.append("fast"))
        scheduler.advance(5)
        assert fired == ["fast", "slow"]

    def test_ties_fire_in_scheduling_order(self, scheduler):
        fired = []
        for name in ("a", "b", "c"):
            scheduler.schedule(1.0, lambda name=name: fired.append(name))
        scheduler.advance(1.0)
        assert fired == ["a", "b", "c"]

    def test_clock_reads_due_time_inside_callback(self, scheduler):
        start = scheduler.now()
        seen = []
        scheduler.schedule(1.5, lambda: seen.append(scheduler.now()))
        scheduler.advance(10)
        assert seen == [start + timedelta(seconds=1.5)]
        assert scheduler.now() == start + timedelta(seconds=10)

    def test_cancelled_call_never_fires(self, scheduler):
        fired = []
        call = scheduler.schedule(1.0, lambda: fired.append("x"))
        call.cancel()
        assert scheduler.pending == 0
        scheduler.advance(2)
        assert fired == []

    def test_callbacks_scheduled_by_callbacks_fire_within_window(self, scheduler):
        fired = []

        def first():
            fired.append("first")
            scheduler.schedule(0.5, lambda: fired.append("second"))

        scheduler.schedule(1.0, first)
        scheduler.advance(1.5)
        assert fired == ["first", "second"]

    def test_run_all_drains_queue(self, scheduler):
        fired = []
        scheduler.schedule(3, lambda: fired.append(3))
        scheduler.schedule(1, lambda: fired.append(1))
        assert scheduler.run_all() == 2
        assert fired == [1, 3]
        assert scheduler.pending == 0

    def test_negative_delay_rejected(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.schedule(-1, lambda: None)


class TestTimerScheduler:
    def test_fires_on_background_thread(self):
        scheduler = TimerScheduler()
        scheduler.start()
        done = threading.Event()
        threads = []

        def callback():
            threads.append(threading.current_thread().name)
            done.set()

        try:
            scheduler.schedule(0.01, callback)
            assert done.wait(2)
            assert threads == ["codechat-scheduler"]
        finally:
            scheduler.shutdown()

    def test_failing_callback_does_not_stop_thread(self):
        scheduler = TimerScheduler()
        scheduler.start()
        done = threading.Event()

        def boom():
            raise RuntimeError("boom")

        try:
            scheduler.schedule(0.01, boom)
            scheduler.schedule(0.02, done.set)
            assert done.wait(2)
        finally:
            scheduler.shutdown()

    def test_now_is_non_decreasing(self):
        scheduler = TimerScheduler()
        first = scheduler.now()
        assert scheduler.now() >= first


class TestBuildScheduler:
    def test_virtual(self):
        assert isinstance(build_scheduler({"SCHEDULER": "virtual"}), VirtualScheduler)

    def test_unknown(self):
        with pytest.raises(ValueError):
            build_scheduler({"SCHEDULER": "cron"})
