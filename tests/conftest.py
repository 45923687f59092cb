import json
import random
from typing import Any, Callable, Dict, List
import pytest
from fastapi.testclient import TestClient
import requests

# Import your FastAPI app
from main import app
from breathpacer.utils import memory
from breathpacer.utils.models import Regime

# ----------------------------- Core client ----------------------------------
@pytest.fixture
def client() -> TestClient:
    """Shared FastAPI TestClient."""
    return TestClient(app)

@pytest.fixture(autouse=True)
def clear_sessions():
    """Every test starts with an empty in-memory session store."""
    memory.sessions.clear()
    yield
    memory.sessions.clear()

# ----------------------------- Randomness -----------------------------------
@pytest.fixture
def seeded_rng() -> Callable[[], random.Random]:
    """A deterministic rng factory: each regime is seeded from one Random(1234) stream."""
    seeds = random.Random(1234)
    return lambda: random.Random(seeds.getrandbits(64))

# ----------------------------- Regimes --------------------------------------
@pytest.fixture
def short_regime() -> Regime:
    return Regime(duration_ms=10000, breaths_per_minute=10)

@pytest.fixture
def four_regimes() -> List[Regime]:
    return [
        Regime(duration_ms=15000, breaths_per_minute=10, hold_pos="postInhale", randomize=True),
        Regime(duration_ms=20000, breaths_per_minute=12, randomize=True),
        Regime(duration_ms=30000, breaths_per_minute=15, hold_pos="postExhale", randomize=True),
        Regime(duration_ms=20000, breaths_per_minute=10, randomize=True),
    ]

@pytest.fixture
def regimes_payload() -> Dict[str, Any]:
    return {
        "regimes": [
            {"durationMs": 10000, "breathsPerMinute": 10, "randomize": False},
            {"durationMs": 10000, "breathsPerMinute": 6, "randomize": False},
        ]
    }

# ----------------------------- CSV payloads ---------------------------------
@pytest.fixture
def regimes_csv_data() -> str:
    return (
        "12000,10,,false\n"
        "12000,10,,true\n"
        "12000,10,postInhale,false\n"
        "12000,10,postExhale,true\n"
    )

@pytest.fixture
def instructions_csv_data() -> str:
    return (
        "4000,in\n"
        "2000,hold\n"
        "6000,out\n"
    )

# ----------------------------- HTTP response shim ----------------------------
class _Resp:
    def __init__(self, status_code: int, json_obj: Any):
        self.status_code = status_code
        self._json = json_obj
        self.text = json.dumps(json_obj) if json_obj is not None else ""
        self.content = self.text.encode("utf-8")
    def json(self) -> Any: return self._json
    def raise_for_status(self):
        if not (200 <= self.status_code < 300):
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}", response=self)
@pytest.fixture
def make_response() -> Callable[[int, Any], _Resp]:
    def _make(status: int, body: Any) -> _Resp: return _Resp(status, body)
    return _make
