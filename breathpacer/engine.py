import random
from collections import deque
from concurrent.futures import Future
from typing import Callable, Deque, List, Optional, Sequence

from breathpacer.adapters.base_adapter import ClockAdapter
from breathpacer.compiler import RngFactory, compile_regimes
from breathpacer.config import settings
from breathpacer.errors import PlaybackStateError
from breathpacer.interpolation import height_at, phase_at
from breathpacer.logger import get_logger
from breathpacer.utils.models import BoundaryEvent, CompiledTrack, Guide, Regime, RegimeBoundary

logger = get_logger(__name__)

Observer = Callable[[float, Regime], None]

IDLE = "idle"
RUNNING = "running"
PAUSED = "paused"
COMPLETED = "completed"


class PlaybackEngine:
    """
    Drives a compiled breath track from externally supplied time samples.

    The engine has no thread or timer of its own: every call to tick()
    advances the logical clock by the distance between this sample and the
    previous one, fires the regime boundaries that have been reached, and
    reports where the guide is. Calls must be serialized by the caller.
    """

    def __init__(
        self,
        regimes: Optional[Sequence[Regime]] = None,
        *,
        clock: Optional[ClockAdapter] = None,
        rng_factory: RngFactory = random.Random,
        drain_all_boundaries: Optional[bool] = None,
    ):
        self.clock = clock
        self.rng_factory = rng_factory
        self.drain_all_boundaries = (
            settings.DRAIN_ALL_BOUNDARIES if drain_all_boundaries is None else drain_all_boundaries
        )
        self._observers: List[Observer] = []
        self._compiled: Optional[CompiledTrack] = None
        self._pending: Deque[RegimeBoundary] = deque()
        self._state = IDLE
        self._elapsed = 0.0
        self._last_instant: Optional[float] = None
        self._completion: Optional[Future] = None

        if regimes is not None:
            self.set_regimes(regimes)

    # --- track installation ---
    def set_regimes(self, regimes: Sequence[Regime]) -> CompiledTrack:
        """
        Compiles and installs a new regime program. Compilation is atomic, so
        a validation error leaves the current track in place.
        """
        compiled = compile_regimes(regimes, self.rng_factory)
        self.load(compiled)
        return compiled

    def load(self, compiled: CompiledTrack) -> None:
        """
        Installs an already compiled track. While playing, the elapsed clock
        keeps running. Of the boundaries already behind it only the latest is
        kept, so the next tick announces the regime that is now playing.
        """
        self._compiled = compiled
        behind = [b for b in compiled.boundaries if b.boundary <= self._elapsed]
        ahead = [b for b in compiled.boundaries if b.boundary > self._elapsed]
        self._pending = deque(behind[-1:] + ahead)
        logger.info(
            f"Installed track of {len(compiled.points)} points ({compiled.duration_ms:.0f} ms), "
            f"{len(self._pending)} pending boundaries, state={self._state}."
        )

    # --- read-only views ---
    @property
    def state(self) -> str:
        return self._state

    @property
    def elapsed_ms(self) -> float:
        return self._elapsed

    @property
    def track(self) -> Optional[CompiledTrack]:
        return self._compiled

    @property
    def boundaries(self) -> List[RegimeBoundary]:
        return list(self._compiled.boundaries) if self._compiled else []

    @property
    def pending_boundaries(self) -> List[RegimeBoundary]:
        return list(self._pending)

    @property
    def completion(self) -> Optional[Future]:
        return self._completion

    def subscribe(self, observer: Observer) -> None:
        """Registers a callable invoked as observer(elapsed_ms, regime) on every boundary crossing."""
        self._observers.append(observer)

    # --- transport ---
    def start(self) -> Future:
        """
        Restarts playback from the beginning of the installed track and
        returns a future resolved (with the elapsed ms) when it completes.
        """
        compiled = self._require_track()
        if self._completion is not None and not self._completion.done():
            self._completion.cancel()

        self._elapsed = 0.0
        self._last_instant = None
        self._pending = deque(compiled.boundaries)
        self._completion = Future()
        self._set_state(RUNNING)
        return self._completion

    def pause(self) -> None:
        if self._state != RUNNING:
            logger.debug(f"pause() ignored in state {self._state}.")
            return
        self._last_instant = None
        self._set_state(PAUSED)

    def resume(self) -> None:
        if self._state not in (PAUSED, IDLE):
            logger.debug(f"resume() ignored in state {self._state}.")
            return
        if self._completion is None:
            self._completion = Future()
        self._last_instant = None
        self._set_state(RUNNING)

    def tick(self, instant: Optional[float] = None) -> Guide:
        """
        Advances playback to `instant` (ms, same timebase as previous ticks).
        Samples the engine's clock when no instant is given. Outside the
        running state the guide is reported unchanged.
        """
        compiled = self._require_track()
        if self._state != RUNNING:
            return self.guide()
        if instant is None:
            if self.clock is None:
                raise PlaybackStateError("tick() needs an instant when the engine has no clock.")
            instant = self.clock.now_ms()

        if self._last_instant is not None:
            self._elapsed += instant - self._last_instant
        self._last_instant = instant

        fired = self._fire_due_boundaries()

        points = compiled.points
        if len(points) <= 1 or self._elapsed > points[-1].t:
            self._complete()

        return self.guide(fired)

    def guide(self, fired: Optional[List[BoundaryEvent]] = None) -> Guide:
        points = self._compiled.points if self._compiled else []
        return Guide(
            elapsed_ms=self._elapsed,
            height=height_at(points, self._elapsed),
            phase=phase_at(points, self._elapsed),
            state=self._state,
            completed=self._state == COMPLETED,
            fired=fired or [],
        )

    # --- internals ---
    def _require_track(self) -> CompiledTrack:
        if self._compiled is None:
            raise PlaybackStateError("No track has been installed; call set_regimes() or load() first.")
        return self._compiled

    def _set_state(self, state: str) -> None:
        logger.info(f"Playback {self._state} -> {state} at {self._elapsed:.0f} ms.")
        self._state = state

    def _fire_due_boundaries(self) -> List[BoundaryEvent]:
        fired = []
        while self._pending and self._elapsed >= self._pending[0].boundary:
            boundary = self._pending.popleft()
            event = BoundaryEvent(elapsed_ms=self._elapsed, regime=boundary.regime)
            fired.append(event)
            logger.info(f"Regime boundary at {boundary.boundary:.0f} ms crossed at {self._elapsed:.0f} ms.")
            self._notify(event)
            if not self.drain_all_boundaries:
                break
        return fired

    def _notify(self, event: BoundaryEvent) -> None:
        for observer in self._observers:
            try:
                observer(event.elapsed_ms, event.regime)
            except Exception as e:
                logger.exception(f"Boundary observer {observer!r} failed: {e}")

    def _complete(self) -> None:
        self._set_state(COMPLETED)
        if self._completion is None:
            self._completion = Future()
        if not self._completion.done():
            self._completion.set_result(self._elapsed)
