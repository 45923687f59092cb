from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

HoldPosition = Literal["postInhale", "postExhale"]
Breathe = Literal["in", "out", "hold"]
Phase = Literal["inhale", "exhale", "hold", "idle"]
EngineState = Literal["idle", "running", "paused", "completed"]


class WireModel(BaseModel):
    """snake_case attributes, camelCase on the wire; both accepted on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Regime(WireModel):
    model_config = ConfigDict(frozen=True)

    duration_ms: int = Field(..., description="Requested regime length in ms (minimum 10000)")
    breaths_per_minute: int = Field(..., description="Breathing rate, 2-60")
    hold_pos: Optional[HoldPosition] = None
    randomize: bool = False


class BreathPoint(WireModel):
    model_config = ConfigDict(frozen=True)

    t: float
    h: float


class RegimeBoundary(WireModel):
    boundary: float = Field(..., description="Track time (ms) at which the regime's first breath begins")
    regime: Regime = Field(..., description="The regime as it was requested")
    realized_duration_ms: float = Field(..., description="Generated length of the regime (ms)")


class CompiledTrack(WireModel):
    points: List[BreathPoint]
    boundaries: List[RegimeBoundary] = Field(default_factory=list)

    @property
    def duration_ms(self) -> float:
        return self.points[-1].t if self.points else 0.0


class Instruction(WireModel):
    model_config = ConfigDict(frozen=True)

    duration: int
    breathe: Breathe


class BoundaryEvent(WireModel):
    elapsed_ms: float
    regime: Regime


class Guide(WireModel):
    elapsed_ms: float
    height: float
    phase: Phase
    state: EngineState
    completed: bool
    fired: List[BoundaryEvent] = Field(default_factory=list)


# --- HTTP payloads ---
class CompileRequest(WireModel):
    regimes: List[Regime]
    seed: Optional[int] = None


class CompileResponse(WireModel):
    duration_ms: float
    points: List[BreathPoint]
    boundaries: List[RegimeBoundary]


class UploadResponse(CompileResponse):
    regimes: List[Regime]


class TickRequest(WireModel):
    instant: Optional[float] = None


class SessionCreated(CompileResponse):
    session_id: str


class SessionStatus(WireModel):
    session_id: str
    state: EngineState
    elapsed_ms: float
    pending_boundaries: int
    guide: Guide
