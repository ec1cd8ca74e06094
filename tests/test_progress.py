"""Tests for ProgressTracker."""

from __future__ import annotations

import time

import pytest

from mincompile.progress import MirrorState, ProgressTracker


class TestProgressTracker:
    def test_starts_unconfigured(self):
        tracker = ProgressTracker("demo")
        assert tracker.state is MirrorState.UNCONFIGURED

    def test_basic_flow(self):
        tracker = ProgressTracker()
        tracker.advance(MirrorState.MAIN_TARGET_READY, detail="target=main")

        summary = tracker.get_summary()
        assert summary["state"] == "main_target_ready"
        assert len(summary["phases"]) == 2
        assert summary["phases"][1]["detail"] == "target=main"

    def test_illegal_transition(self):
        tracker = ProgressTracker()
        with pytest.raises(ValueError):
            tracker.advance(MirrorState.COMPILING)

    def test_fail_from_any_live_state(self):
        tracker = ProgressTracker()
        tracker.advance(MirrorState.MAIN_TARGET_READY)
        tracker.advance(MirrorState.MIRROR_TARGET_WIRED)
        tracker.advance(MirrorState.DEPENDENCY_RESOLVING)
        tracker.fail("No available version >= 2.1")

        summary = tracker.get_summary()
        assert summary["state"] == "failed"
        assert summary["phases"][-1]["error"] == "No available version >= 2.1"

    def test_fail_twice_keeps_first_error(self):
        tracker = ProgressTracker()
        tracker.fail("first")
        tracker.fail("second")
        assert tracker.history == [MirrorState.UNCONFIGURED, MirrorState.FAILED]
        assert tracker.phases[-1].error == "first"

    def test_duration(self):
        tracker = ProgressTracker()
        time.sleep(0.01)
        tracker.advance(MirrorState.MAIN_TARGET_READY)

        p = tracker.phases[0]
        assert p.duration is not None
        assert p.duration >= 0.01

    def test_callback(self):
        events = []
        tracker = ProgressTracker()
        tracker.callbacks.append(lambda p: events.append(p.state))

        tracker.advance(MirrorState.MAIN_TARGET_READY)
        tracker.fail("boom")

        assert events == [MirrorState.MAIN_TARGET_READY, MirrorState.FAILED]

    def test_callback_errors_are_contained(self):
        tracker = ProgressTracker()
        tracker.callbacks.append(lambda p: 1 / 0)
        tracker.advance(MirrorState.MAIN_TARGET_READY)
        assert tracker.state is MirrorState.MAIN_TARGET_READY

    def test_can_advance(self):
        tracker = ProgressTracker()
        assert tracker.can_advance(MirrorState.MAIN_TARGET_READY)
        assert not tracker.can_advance(MirrorState.COMPILING)
        tracker.advance(MirrorState.MAIN_TARGET_READY)
        assert not tracker.can_advance(MirrorState.MAIN_TARGET_READY)

    def test_fail_after_done_is_ignored(self):
        tracker = ProgressTracker()
        for state in (
            MirrorState.MAIN_TARGET_READY,
            MirrorState.MIRROR_TARGET_WIRED,
            MirrorState.DEPENDENCY_RESOLVING,
            MirrorState.DEPENDENCY_BOUND,
            MirrorState.COMPILING,
            MirrorState.DONE,
        ):
            tracker.advance(state)
        tracker.fail("late")
        assert tracker.state is MirrorState.DONE
        assert tracker.finished
