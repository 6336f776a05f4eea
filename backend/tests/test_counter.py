"""
Unit tests for ImpactCounterAnimator.

Tests the one-shot Idle -> Animating trigger, frame interpolation and the
template snapshot.
"""

import pytest

from tonypoem.core.content.counter import DEFAULT_TARGETS, CounterState, ImpactCounterAnimator


@pytest.fixture
def animator():
    return ImpactCounterAnimator(clock=lambda: 0.0)


class TestTrigger:
    """Test the visibility trigger."""

    def test_starts_idle(self, animator):
        assert animator.state is CounterState.IDLE
        assert animator.observing is True
        assert animator.frame(5000.0) == {name: 0 for name in DEFAULT_TARGETS}

    def test_below_threshold_does_not_trigger(self, animator):
        assert animator.observe(0.49, now=0.0) is False
        assert animator.state is CounterState.IDLE

    def test_half_visible_triggers(self, animator):
        assert animator.observe(0.5, now=100.0) is True
        assert animator.state is CounterState.ANIMATING
        assert animator.observing is False

    def test_triggers_only_once(self, animator):
        assert animator.observe(0.8, now=0.0) is True
        assert animator.observe(1.0, now=500.0) is False
        assert animator.observe(0.0, now=600.0) is False

        # A second trigger would have restarted the clock at 500
        assert animator.frame(1000.0)["youthsImpacted"] == 250


class TestFrames:
    """Test interpolation over the fixed duration."""

    def test_default_duration(self, animator):
        assert animator.duration_ms == 2000

    def test_fraction_bounds(self, animator):
        assert animator.displayed_at(0.0) == {name: 0 for name in DEFAULT_TARGETS}
        assert animator.displayed_at(1.0) == DEFAULT_TARGETS

    def test_floor_of_target_times_fraction(self):
        animator = ImpactCounterAnimator(targets={"volunteers": 150}, clock=lambda: 0.0)
        animator.observe(1.0, now=0.0)

        assert animator.frame(333.0) == {"volunteers": 24}  # floor(150 * 0.1665)
        assert animator.frame(1999.0) == {"volunteers": 149}
        assert animator.frame(2000.0) == {"volunteers": 150}

    def test_monotonic_non_decreasing(self, animator):
        previous = animator.displayed_at(0.0)
        for step in range(1, 101):
            current = animator.displayed_at(step / 100)
            for name in current:
                assert current[name] >= previous[name]
            previous = current

    def test_fraction_clamped(self, animator):
        animator.observe(1.0, now=1000.0)

        assert animator.frame(500.0) == {name: 0 for name in DEFAULT_TARGETS}
        assert animator.frame(10_000.0) == DEFAULT_TARGETS
        assert animator.fraction == 1.0

    def test_stops_requesting_frames_when_done(self, animator):
        assert animator.wants_frame is False

        animator.observe(1.0, now=0.0)
        assert animator.wants_frame is True

        animator.frame(1000.0)
        assert animator.wants_frame is True

        animator.frame(2000.0)
        assert animator.wants_frame is False

    def test_uses_clock_when_now_omitted(self):
        ticks = iter([100.0, 1100.0])
        animator = ImpactCounterAnimator(targets={"programs": 50}, clock=lambda: next(ticks))

        animator.observe(1.0)
        assert animator.frame() == {"programs": 25}

    def test_invalid_duration(self):
        with pytest.raises(ValueError):
            ImpactCounterAnimator(duration_ms=0)


class TestSnapshot:
    """Test the template snapshot."""

    def test_snapshot_idle(self, animator):
        snapshot = animator.snapshot()

        assert snapshot["state"] == "idle"
        assert snapshot["duration_ms"] == 2000
        assert snapshot["threshold"] == 0.5
        assert [c["key"] for c in snapshot["counters"]] == list(DEFAULT_TARGETS)
        assert all(c["value"] == 0 for c in snapshot["counters"])
        assert snapshot["counters"][0]["label"] == "Youths Impacted"
        assert snapshot["counters"][0]["target"] == 500
