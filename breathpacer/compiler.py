import random
from typing import Callable, List, Optional, Sequence

from breathpacer.config import settings
from breathpacer.errors import RegimeValidationError
from breathpacer.logger import get_logger
from breathpacer.utils.models import BreathPoint, CompiledTrack, Instruction, Regime, RegimeBoundary

logger = get_logger(__name__)

RngFactory = Callable[[], random.Random]

# Height a segment ends on, per instruction
_INSTRUCTION_TARGETS = {"in": 1.0, "out": 0.0}


def ms_per_breath(regime: Regime) -> float:
    return 60000 / regime.breaths_per_minute


def segments_per_breath(regime: Regime) -> int:
    return 3 if regime.hold_pos else 2


def validate_regime(regime: Regime, index: Optional[int] = None) -> None:
    """
    Raises RegimeValidationError when the regime cannot be turned into at
    least one whole breath within the configured limits.
    """
    if regime.duration_ms < settings.MIN_DURATION_MS:
        raise RegimeValidationError(
            f"The minimum duration is {settings.MIN_DURATION_MS} ({settings.MIN_DURATION_MS / 1000:g} seconds).",
            regime, index,
        )
    if regime.breaths_per_minute < settings.MIN_BREATHS_PER_MINUTE:
        raise RegimeValidationError(
            f"The minimum breaths per minute is {settings.MIN_BREATHS_PER_MINUTE}.", regime, index
        )
    if regime.breaths_per_minute > settings.MAX_BREATHS_PER_MINUTE:
        raise RegimeValidationError(
            f"The maximum breaths per minute is {settings.MAX_BREATHS_PER_MINUTE}.", regime, index
        )
    if regime.duration_ms < ms_per_breath(regime):
        raise RegimeValidationError(
            "The minimum number of breaths during the total duration is 1.", regime, index
        )


def segment_sampler(regime: Regime, rng: random.Random) -> Callable[[], float]:
    """
    Returns a zero-argument callable producing successive segment durations
    (ms) for one regime.

    Randomized regimes draw uniformly, with replacement, from a symmetric grid
    around the base segment length. The grid is scaled by the number of
    segments per breath so that the drift of a whole breath stays within
    RANDOM_SPREAD_MS however many holds it has.
    """
    segments = segments_per_breath(regime)
    base = ms_per_breath(regime) / segments
    if not regime.randomize:
        return lambda: base

    spread = settings.RANDOM_SPREAD_MS / segments
    step = settings.RANDOM_STEP_MS / segments
    count = round(2 * settings.RANDOM_SPREAD_MS / settings.RANDOM_STEP_MS)
    choices = [base - spread + k * step for k in range(count + 1)]
    return lambda: rng.choice(choices)


def _breath_targets(regime: Regime) -> List[float]:
    if regime.hold_pos == "postInhale":
        return [1.0, 1.0, 0.0]
    if regime.hold_pos == "postExhale":
        return [1.0, 0.0, 0.0]
    return [1.0, 0.0]


def _regime_points(regime: Regime, offset: float, rng: random.Random) -> List[BreathPoint]:
    """Whole breaths for one regime, starting at track time `offset`."""
    next_duration = segment_sampler(regime, rng)
    targets = _breath_targets(regime)
    points = []
    elapsed = 0.0
    while elapsed < regime.duration_ms:
        for h in targets:
            elapsed += next_duration()
            points.append(BreathPoint(t=offset + elapsed, h=h))
    return points


def compile_regimes(regimes: Sequence[Regime], rng_factory: RngFactory = random.Random) -> CompiledTrack:
    """
    Compiles an ordered list of regimes into a breath track plus the schedule
    of regime boundaries.

    Every regime is validated before any point is generated, so either the
    whole list compiles or a RegimeValidationError is raised. Each regime gets
    a fresh random source from rng_factory.
    """
    for idx, regime in enumerate(regimes):
        validate_regime(regime, idx)

    points = [BreathPoint(t=0.0, h=0.0)]
    boundaries = []
    offset = 0.0
    for regime in regimes:
        generated = _regime_points(regime, offset, rng_factory())
        realized = generated[-1].t - offset
        boundaries.append(RegimeBoundary(boundary=offset, regime=regime, realized_duration_ms=realized))
        points.extend(generated)
        offset = generated[-1].t

    logger.info(f"Compiled {len(regimes)} regimes into {len(points)} points spanning {offset:.0f} ms.")
    return CompiledTrack(points=points, boundaries=boundaries)


def compile_instructions(instructions: Sequence[Instruction]) -> CompiledTrack:
    """
    Builds a track from explicit instructions: "in" rises to 1, "out" falls
    to 0 and "hold" keeps the current height, each over its own duration.
    """
    for idx, instruction in enumerate(instructions):
        if instruction.duration <= 0:
            raise RegimeValidationError(
                f"Instruction durations must be positive, got {instruction.duration}.", instruction, idx
            )

    points = [BreathPoint(t=0.0, h=0.0)]
    for instruction in instructions:
        last = points[-1]
        h = _INSTRUCTION_TARGETS.get(instruction.breathe, last.h)
        points.append(BreathPoint(t=last.t + instruction.duration, h=h))

    logger.info(f"Compiled {len(instructions)} instructions spanning {points[-1].t:.0f} ms.")
    return CompiledTrack(points=points)
