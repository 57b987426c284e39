"""Tests for the debounced autosave coordinator."""

import threading

import pytest

from blockdoc.autosave import AutosaveCoordinator, ThreadingScheduler, make_snapshot

from conftest import para


def snap(title, *texts):
    return make_snapshot(title, [para(str(i), t) for i, t in enumerate(texts)])


@pytest.fixture
def saves():
    return []


@pytest.fixture
def coordinator(saves, scheduler, clock):
    def save(snapshot):
        saves.append((clock.now, snapshot))

    return AutosaveCoordinator(
        save,
        initial=snap("Untitled", ""),
        delay_ms=2000,
        scheduler=scheduler,
        clock=clock,
    )


def test_burst_saves_final_snapshot_once(coordinator, scheduler, saves):
    """S1, S2, S3 half a second apart produce one save of S3 at t=3s."""
    s1, s2, s3 = snap("T", "a"), snap("T", "ab"), snap("T", "abc")

    coordinator.observe(s1)
    scheduler.advance(0.5)
    coordinator.observe(s2)
    scheduler.advance(0.5)
    coordinator.observe(s3)
    scheduler.advance(5.0)

    assert saves == [(3.0, s3)]
    assert coordinator.last_saved_snapshot == s3


def test_identical_snapshot_never_saves(coordinator, scheduler, saves):
    """Feeding the saved state, even twice, schedules nothing."""
    initial = snap("Untitled", "")
    coordinator.observe(initial)
    coordinator.observe(initial)
    scheduler.advance(10)
    assert saves == []
    assert not coordinator.has_pending


def test_same_snapshot_after_save_is_ignored(coordinator, scheduler, saves):
    changed = snap("T", "x")
    coordinator.observe(changed)
    scheduler.advance(2)
    coordinator.observe(snap("T", "x"))
    scheduler.advance(10)
    assert len(saves) == 1


def test_returning_to_saved_state_cancels_pending(coordinator, scheduler, saves):
    """Typing a character and deleting it again saves nothing."""
    coordinator.observe(snap("Untitled", "x"))
    scheduler.advance(1)
    coordinator.observe(snap("Untitled", ""))
    scheduler.advance(10)
    assert saves == []


def test_at_most_one_pending_timer(coordinator, scheduler):
    for text in ("a", "ab", "abc", "abcd"):
        coordinator.observe(snap("T", text))
    assert len(scheduler.pending) == 1


def test_snapshot_is_copied(coordinator, scheduler, saves):
    """Later mutation of the observed dict does not leak into the save."""
    s = snap("T", "a")
    coordinator.observe(s)
    s["title"] = "mutated"
    scheduler.advance(2)
    assert saves[0][1]["title"] == "T"


def test_saving_indicator_window(coordinator, scheduler, clock):
    """is_saving is true for half a second after a save fires."""
    coordinator.observe(snap("T", "a"))
    assert not coordinator.is_saving
    scheduler.advance(2)
    assert coordinator.is_saving
    scheduler.advance(0.4)
    assert coordinator.is_saving
    scheduler.advance(0.2)
    assert not coordinator.is_saving


def test_flush_saves_immediately(coordinator, scheduler, saves):
    coordinator.observe(snap("T", "a"))
    assert coordinator.flush()
    assert len(saves) == 1
    assert not coordinator.flush()
    scheduler.advance(10)
    assert len(saves) == 1


def test_close_cancels_pending(coordinator, scheduler, saves):
    """Nothing fires after close, and later snapshots are ignored."""
    coordinator.observe(snap("T", "a"))
    coordinator.close()
    coordinator.observe(snap("T", "b"))
    scheduler.advance(10)
    assert saves == []


def test_save_failure_is_not_retried_by_coordinator(scheduler, clock):
    """The snapshot counts as saved once issued; the next change retries."""
    calls = []

    def save(snapshot):
        calls.append(snapshot)
        raise RuntimeError("disk full")

    coordinator = AutosaveCoordinator(save, delay_ms=1000, scheduler=scheduler, clock=clock)
    coordinator.observe(snap("T", "a"))
    with pytest.raises(RuntimeError):
        scheduler.advance(1)
    assert coordinator.last_saved_snapshot == snap("T", "a")
    assert not coordinator.has_pending


def test_threading_scheduler_fires():
    """The default scheduler runs callbacks on a timer thread."""
    fired = threading.Event()
    coordinator = AutosaveCoordinator(lambda s: fired.set(), delay_ms=10, scheduler=ThreadingScheduler())
    coordinator.observe(snap("T", "a"))
    assert fired.wait(2.0)
