import math
from io import StringIO
from typing import List

import pandas as pd

from breathpacer.errors import InstructionParseError
from breathpacer.logger import get_logger
from breathpacer.utils.models import Instruction, Regime

logger = get_logger(__name__)

REGIME_COLUMNS = ["durationMs", "breathsPerMinute", "holdPos", "randomize"]
INSTRUCTION_COLUMNS = ["duration", "breathe"]

_HOLD_TOKENS = {"postInhale", "postExhale", ""}
_BOOL_TOKENS = {"true": True, "false": False}
_BREATHE_TOKENS = {"in", "out", "hold"}


def _read_table(text: str, columns: List[str]) -> pd.DataFrame:
    """
    Reads headerless CSV text into a frame of strings, after checking that
    every non-blank line has exactly len(columns) fields.
    """
    lines = [line for line in text.strip().splitlines() if line.strip()]
    if not lines:
        raise InstructionParseError("No lines to parse.")
    expected_commas = len(columns) - 1
    for line in lines:
        if line.count(",") != expected_commas:
            raise InstructionParseError(
                f'line "{line}" does not contain exactly {expected_commas} comma{"s" if expected_commas != 1 else ""}'
            )

    df = pd.read_csv(
        StringIO("\n".join(lines)),
        header=None,
        names=columns,
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
    )
    return df.apply(lambda col: col.str.strip())


def _parse_duration(raw: str) -> int:
    duration = pd.to_numeric(raw, errors="coerce")
    if pd.isna(duration) or not math.isfinite(duration) or duration < 0 or duration != int(duration):
        raise InstructionParseError(f'failed to parse nonnegative numeric duration from "{raw}"')
    return int(duration)


def parse_regimes_csv(text: str) -> List[Regime]:
    """
    Parses `durationMs,breathsPerMinute,holdPos,randomize` lines into regimes.
    holdPos may be empty; randomize is "true" or "false".
    """
    df = _read_table(text, REGIME_COLUMNS)
    regimes = []
    for row in df.itertuples(index=False):
        duration_ms = _parse_duration(row.durationMs)
        bpm = pd.to_numeric(row.breathsPerMinute, errors="coerce")
        if pd.isna(bpm) or not math.isfinite(bpm) or bpm != int(bpm):
            raise InstructionParseError(f'failed to parse integer breaths per minute from "{row.breathsPerMinute}"')
        if row.holdPos not in _HOLD_TOKENS:
            raise InstructionParseError(f'hold position "{row.holdPos}" must be "postInhale", "postExhale", or empty')
        randomize = _BOOL_TOKENS.get(row.randomize.lower())
        if randomize is None:
            raise InstructionParseError(f'randomize flag "{row.randomize}" must be "true" or "false"')
        regimes.append(Regime(
            duration_ms=duration_ms,
            breaths_per_minute=int(bpm),
            hold_pos=row.holdPos or None,
            randomize=randomize,
        ))

    logger.info(f"Parsed {len(regimes)} regimes.")
    return regimes


def parse_instructions_csv(text: str) -> List[Instruction]:
    """Parses `duration,breathe` lines, where breathe is "in", "out" or "hold"."""
    df = _read_table(text, INSTRUCTION_COLUMNS)
    instructions = []
    for row in df.itertuples(index=False):
        duration = _parse_duration(row.duration)
        if row.breathe not in _BREATHE_TOKENS:
            raise InstructionParseError(f'breathe instruction "{row.breathe}" must be "in", "out", or "hold"')
        instructions.append(Instruction(duration=duration, breathe=row.breathe))

    logger.info(f"Parsed {len(instructions)} instructions.")
    return instructions
