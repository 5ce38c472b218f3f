"""Tests for the timer engine (start/stop/reset)."""

import pytest

from tasktimer.errors import NotFoundError, NotRunningError, ValidationError
from conftest import START_MS


class TestTimerStart:

    def test_start_sets_running_state(self, timer_repository, task_repository, sample_task):
        timer = timer_repository.start(sample_task.id)

        assert timer.is_running is True
        assert timer.start_time == START_MS
        assert timer.elapsed_time == 0
        assert timer.target_time == sample_task.target_time

        task = task_repository.get(sample_task.id)
        assert task.is_running is True
        assert task.start_time == START_MS
        assert task.elapsed_time == 0

    def test_start_persists_projection(self, timer_repository, sample_task):
        started = timer_repository.start(sample_task.id)
        assert timer_repository.get_timer(sample_task.id) == started

    def test_start_nonexistent_task(self, timer_repository):
        with pytest.raises(NotFoundError):
            timer_repository.start("nonexistent-id")

    def test_start_when_running_keeps_original_segment(self, timer_repository, task_repository, sample_task, clock):
        first = timer_repository.start(sample_task.id)
        clock.advance(minutes=2)

        again = timer_repository.start(sample_task.id)

        assert again == first
        assert task_repository.get(sample_task.id).start_time == START_MS

        clock.advance(minutes=3)
        stopped = timer_repository.stop(sample_task.id)
        assert stopped.elapsed_time == pytest.approx(5.0)

    def test_completed_task_cannot_start(self, timer_repository, task_repository, sample_task):
        task_repository.complete(sample_task.id)
        with pytest.raises(ValidationError) as exc_info:
            timer_repository.start(sample_task.id)
        assert "completedAt" in exc_info.value.errors
        assert timer_repository.get_timer(sample_task.id) is None


class TestTimerStop:

    def test_elapsed_accumulates_across_segments(self, timer_repository, task_repository, sample_task, clock):
        timer_repository.start(sample_task.id)
        clock.advance(minutes=5)
        first = timer_repository.stop(sample_task.id)
        assert first.elapsed_time == pytest.approx(5.0)
        assert first.is_running is False

        clock.advance(minutes=60)  # idle time between segments is not counted
        timer_repository.start(sample_task.id)
        clock.advance(minutes=3)
        second = timer_repository.stop(sample_task.id)
        assert second.elapsed_time == pytest.approx(8.0)

        task = task_repository.get(sample_task.id)
        assert task.elapsed_time == pytest.approx(8.0)
        assert task.is_running is False
        assert task.start_time is None

    def test_fractional_minutes(self, timer_repository, sample_task, clock):
        timer_repository.start(sample_task.id)
        clock.advance(seconds=90)
        assert timer_repository.stop(sample_task.id).elapsed_time == pytest.approx(1.5)

    def test_stop_without_timer_record(self, timer_repository, sample_task):
        with pytest.raises(NotRunningError):
            timer_repository.stop(sample_task.id)

    def test_stop_already_stopped_is_noop(self, timer_repository, task_repository, sample_task, clock):
        timer_repository.start(sample_task.id)
        clock.advance(minutes=5)
        timer_repository.stop(sample_task.id)
        before = task_repository.get(sample_task.id)

        clock.advance(minutes=5)
        with pytest.raises(NotRunningError):
            timer_repository.stop(sample_task.id)

        assert task_repository.get(sample_task.id) == before
        assert timer_repository.get_timer(sample_task.id).elapsed_time == pytest.approx(5.0)

    def test_stop_nonexistent_task(self, timer_repository):
        with pytest.raises(NotRunningError):
            timer_repository.stop("nonexistent-id")

    def test_clock_going_backwards_adds_nothing(self, timer_repository, sample_task, clock):
        timer_repository.start(sample_task.id)
        clock.advance(minutes=-1)
        assert timer_repository.stop(sample_task.id).elapsed_time == 0


class TestTimerFollowsTaskUpdates:

    def test_elapsed_patch_while_running_survives_stop(self, timer_repository, task_repository, sample_task, clock):
        timer_repository.start(sample_task.id)
        task_repository.update(sample_task.id, {"elapsedTime": 100})
        clock.advance(minutes=2)

        stopped = timer_repository.stop(sample_task.id)

        assert stopped.elapsed_time == pytest.approx(102.0)
        assert task_repository.get(sample_task.id).elapsed_time == pytest.approx(102.0)

    def test_elapsed_patch_while_stopped_updates_timer_view(self, timer_repository, task_repository, sample_task, clock):
        timer_repository.start(sample_task.id)
        clock.advance(minutes=10)
        timer_repository.stop(sample_task.id)

        task_repository.update(sample_task.id, {"elapsedTime": 0})

        timer = timer_repository.get_timer(sample_task.id)
        assert timer.elapsed_time == 0
        assert timer.is_running is False

    def test_target_patch_updates_timer_view(self, timer_repository, task_repository, sample_task):
        timer_repository.start(sample_task.id)
        task_repository.update(sample_task.id, {"targetTime": 90})

        timer = timer_repository.get_timer(sample_task.id)
        assert timer.target_time == 90
        assert timer.is_running is True
        assert timer.start_time == START_MS

    def test_patch_without_timer_record_creates_none(self, timer_repository, task_repository, sample_task):
        task_repository.update(sample_task.id, {"elapsedTime": 15})
        assert timer_repository.get_timer(sample_task.id) is None


class TestTimerReset:

    def test_reset_running_timer(self, timer_repository, task_repository, sample_task, clock):
        timer_repository.start(sample_task.id)
        clock.advance(minutes=4)

        timer = timer_repository.reset(sample_task.id)

        assert timer.elapsed_time == 0
        assert timer.is_running is False
        assert timer.start_time == 0
        task = task_repository.get(sample_task.id)
        assert task.elapsed_time == 0
        assert task.is_running is False
        assert task.start_time is None

    def test_reset_stopped_timer(self, timer_repository, sample_task):
        assert timer_repository.reset(sample_task.id).elapsed_time == 0
        assert timer_repository.reset(sample_task.id).is_running is False

    def test_reset_nonexistent_task(self, timer_repository):
        with pytest.raises(NotFoundError):
            timer_repository.reset("nonexistent-id")


class TestTimerInvariants:

    def test_invariants_hold_over_a_sequence(self, timer_repository, task_repository, sample_task, clock):
        steps = [
            timer_repository.start, timer_repository.start, timer_repository.stop,
            timer_repository.reset, timer_repository.start, timer_repository.stop,
            timer_repository.start, timer_repository.reset, timer_repository.start,
        ]
        for step in steps:
            clock.advance(minutes=2)
            step(sample_task.id)
            task = task_repository.get(sample_task.id)
            timer = timer_repository.get_timer(sample_task.id)

            assert task.elapsed_time >= 0
            assert task.is_running == timer.is_running
            if task.is_running:
                assert task.start_time is not None
                assert task.completed_at is None
            else:
                assert task.start_time is None

    def test_deleting_task_removes_timer(self, timer_repository, task_repository, sample_task):
        timer_repository.start(sample_task.id)
        task_repository.delete(sample_task.id)
        assert timer_repository.get_timer(sample_task.id) is None
