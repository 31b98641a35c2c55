import gc
import threading
import time

import pytest

from escapetime import (
    AlreadyCollected,
    BufferOverflow,
    JoinFailure,
    NoIdleWorker,
    NoWorkersRan,
    RenderError,
    SlotState,
    UnknownJob,
    WorkerPool,
)


def _constant_job(value: int, length: int, delay: float = 0.0):
    def job():
        if delay:
            time.sleep(delay)
        return bytes([value]) * length

    return job


def test_dispatch_fills_slots_in_order():
    pool = WorkerPool(3)
    assert pool.capacity == 3
    assert pool.idle_slots() == 3

    handles = [pool.dispatch(_constant_job(i, 3)) for i in range(3)]
    assert [h.slot for h in handles] == [0, 1, 2]
    assert pool.slot_states() == (SlotState.BUSY,) * 3

    pool.collect_all(handles, (1, 3))
    assert pool.idle_slots() == 3


def test_dispatch_beyond_capacity_fails():
    pool = WorkerPool(2)
    handles = [pool.dispatch(_constant_job(1, 3)), pool.dispatch(_constant_job(2, 3))]
    with pytest.raises(NoIdleWorker) as excinfo:
        pool.dispatch(_constant_job(3, 3))
    assert excinfo.value.context["capacity"] == 2
    pool.collect_all(handles, (1, 2))


def test_results_follow_submission_order_not_completion_order():
    # rows [0,10), [10,20), [20,30) of a 1-pixel wide image; the first job finishes last
    pool = WorkerPool(3)
    first = threading.Event()

    def slow_first():
        first.wait(timeout=5)
        time.sleep(0.05)
        return b"\x01" * 30

    def fast(value):
        def job():
            first.set()
            return bytes([value]) * 30

        return job

    handles = [pool.dispatch(slow_first), pool.dispatch(fast(2)), pool.dispatch(fast(3))]
    buffer = pool.collect_all(handles, (1, 30))

    assert len(buffer) == 90
    assert buffer[:30] == b"\x01" * 30
    assert buffer[30:60] == b"\x02" * 30
    assert buffer[60:] == b"\x03" * 30


def test_collecting_twice_fails():
    pool = WorkerPool(1)
    handle = pool.dispatch(_constant_job(7, 3))
    assert pool.collect_all([handle], (1, 1)) == b"\x07" * 3
    with pytest.raises(AlreadyCollected):
        pool.collect_all([handle], (1, 1))


def test_stale_handle_after_slot_reuse_fails():
    pool = WorkerPool(1)
    stale = pool.dispatch(_constant_job(1, 3))
    pool.collect_all([stale], (1, 1))
    fresh = pool.dispatch(_constant_job(2, 3))
    assert fresh.slot == stale.slot
    with pytest.raises(AlreadyCollected):
        pool.collect_all([stale], (1, 1))
    assert pool.collect_all([fresh], (1, 1)) == b"\x02" * 3


def test_handle_from_another_pool_is_unknown():
    other = WorkerPool(1)
    handle = other.dispatch(_constant_job(1, 3))
    with pytest.raises(UnknownJob):
        WorkerPool(1).collect_all([handle], (1, 1))
    other.collect_all([handle], (1, 1))


def test_handle_outliving_its_pool_is_unknown():
    old = WorkerPool(1)
    stale = old.dispatch(_constant_job(1, 3))
    old.collect_all([stale], (1, 1))
    del old
    gc.collect()

    # a new pool may land at the same address and hand out the same slot/generation
    pool = WorkerPool(1)
    fresh = pool.dispatch(_constant_job(2, 3))
    assert (fresh.slot, fresh.generation) == (stale.slot, stale.generation)
    with pytest.raises(UnknownJob):
        pool.collect_all([stale], (1, 1))
    assert pool.collect_all([fresh], (1, 1)) == b"\x02" * 3


def test_failing_job_is_a_join_failure():
    pool = WorkerPool(2)

    def broken():
        raise ZeroDivisionError("boom")

    handles = [pool.dispatch(_constant_job(1, 3)), pool.dispatch(broken)]
    with pytest.raises(JoinFailure) as excinfo:
        pool.collect_all(handles, (1, 2))
    assert isinstance(excinfo.value.__cause__, ZeroDivisionError)
    assert excinfo.value.context["slot"] == 1
    assert isinstance(excinfo.value, RenderError)


def test_job_returning_non_bytes_is_a_join_failure():
    pool = WorkerPool(1)
    handle = pool.dispatch(lambda: [1, 2, 3])
    with pytest.raises(JoinFailure, match="expected bytes"):
        pool.collect_all([handle], (1, 1))


def test_no_handles_means_no_workers_ran():
    with pytest.raises(NoWorkersRan):
        WorkerPool(1).collect_all([], (4, 4))


def test_empty_results_mean_no_workers_ran():
    pool = WorkerPool(2)
    handles = [pool.dispatch(lambda: b""), pool.dispatch(lambda: b"")]
    with pytest.raises(NoWorkersRan):
        pool.collect_all(handles, (1, 2))


def test_oversized_result_overflows_buffer():
    pool = WorkerPool(1)
    handle = pool.dispatch(_constant_job(1, 7))
    with pytest.raises(BufferOverflow):
        pool.collect_all([handle], (1, 2))


def test_short_results_leave_tail_zeroed():
    pool = WorkerPool(1)
    handle = pool.dispatch(_constant_job(9, 3))
    assert pool.collect_all([handle], (1, 2)) == b"\x09\x09\x09\x00\x00\x00"


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        WorkerPool(0)


def test_error_message_names_kind():
    with pytest.raises(NoWorkersRan) as excinfo:
        WorkerPool(1).collect_all([], (1, 1))
    assert str(excinfo.value).startswith("NoWorkersRan: ")
