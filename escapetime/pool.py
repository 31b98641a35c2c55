"""A fixed set of worker slots, each running at most one render job."""

from __future__ import annotations

import enum
import itertools
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from .errors import AlreadyCollected, BufferOverflow, JoinFailure, NoIdleWorker, NoWorkersRan, UnknownJob

Job = Callable[[], bytes]

_pool_serials = itertools.count(1)


class SlotState(enum.Enum):
    IDLE = "idle"
    BUSY = "busy"


@dataclass(frozen=True)
class JobHandle:
    """Identifies one dispatched job; valid for a single collection."""

    slot: int
    generation: int
    pool_serial: int = field(repr=False)


class _Slot:
    """One worker slot and the thread currently hosted in it."""

    def __init__(self, index: int) -> None:
        self.index = index
        self.state = SlotState.IDLE
        self.generation = 0
        self.thread: Optional[threading.Thread] = None
        self.result: Optional[bytes] = None
        self.error: Optional[BaseException] = None

    def start(self, job: Job) -> None:
        self.state = SlotState.BUSY
        self.generation += 1
        self.result = None
        self.error = None
        self.thread = threading.Thread(
            target=self._run,
            args=(job,),
            name=f"render-worker-{self.index}",
            daemon=True,
        )
        self.thread.start()

    def _run(self, job: Job) -> None:
        try:
            self.result = job()
        except BaseException as exc:  # surfaced to the collector as JoinFailure
            self.error = exc

    def release(self) -> None:
        self.state = SlotState.IDLE
        self.thread = None
        self.result = None
        self.error = None


class WorkerPool:
    """Bounded pool of ``capacity`` worker slots.

    ``dispatch`` and ``collect_all`` are meant to be driven from a single
    orchestrating thread; only the jobs themselves run concurrently.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"pool capacity must be at least 1, got {capacity}")
        self._serial = next(_pool_serials)
        self._slots = tuple(_Slot(i) for i in range(capacity))

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def idle_slots(self) -> int:
        return sum(1 for slot in self._slots if slot.state is SlotState.IDLE)

    def slot_states(self) -> tuple[SlotState, ...]:
        return tuple(slot.state for slot in self._slots)

    def dispatch(self, job: Job) -> JobHandle:
        """Start ``job`` on the first idle slot and return its handle."""

        for slot in self._slots:
            if slot.state is SlotState.IDLE:
                slot.start(job)
                return JobHandle(slot=slot.index, generation=slot.generation, pool_serial=self._serial)
        raise NoIdleWorker("no more worker slots available", capacity=self.capacity)

    def _take(self, handle: JobHandle) -> bytes:
        if handle.pool_serial != self._serial or not 0 <= handle.slot < len(self._slots):
            raise UnknownJob("no such render job", slot=handle.slot)

        slot = self._slots[handle.slot]
        if slot.state is not SlotState.BUSY or slot.generation != handle.generation:
            raise AlreadyCollected("render job already collected", slot=handle.slot)

        slot.thread.join()
        result, error = slot.result, slot.error
        slot.release()

        if error is not None:
            raise JoinFailure(
                f"worker {handle.slot} failed: {error!r}", slot=handle.slot
            ) from error
        if not isinstance(result, (bytes, bytearray, memoryview)):
            raise JoinFailure(
                f"worker {handle.slot} returned {type(result).__name__}, expected bytes",
                slot=handle.slot,
            )
        return bytes(result)

    def collect_all(self, handles: Sequence[JobHandle], dimensions: tuple[int, int]) -> bytes:
        """Wait for each job in ``handles`` order and concatenate their bytes.

        The position of every job's bytes is fixed by its place in ``handles``,
        not by when it finished.
        """

        width, height = dimensions
        out_buf = bytearray(width * height * 3)
        index = 0

        for handle in handles:
            chunk = self._take(handle)
            end = index + len(chunk)
            if end > len(out_buf):
                raise BufferOverflow(
                    f"worker {handle.slot} produced {len(chunk)} bytes, only {len(out_buf) - index} left",
                    slot=handle.slot,
                    buffer_size=len(out_buf),
                )
            out_buf[index:end] = chunk
            index = end

        if index == 0:
            raise NoWorkersRan("no render jobs produced any output", handles=len(handles))
        return bytes(out_buf)
