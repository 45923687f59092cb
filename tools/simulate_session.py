import argparse
import time
from typing import List, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from breathpacer.adapters.clock_adapter import MonotonicClock
from breathpacer.config import settings
from breathpacer.engine import PlaybackEngine
from breathpacer.logger import get_logger
from breathpacer.utils.models import Regime
from breathpacer.utils.parsing import parse_regimes_csv

logger = get_logger(__name__)

DEFAULT_REGIMES = [
    Regime(duration_ms=12000, breaths_per_minute=10),
    Regime(duration_ms=12000, breaths_per_minute=10, randomize=True),
    Regime(duration_ms=12000, breaths_per_minute=10, hold_pos="postInhale"),
    Regime(duration_ms=12000, breaths_per_minute=10, hold_pos="postExhale", randomize=True),
]


def load_regimes(path: str = None) -> List[Regime]:
    if not path:
        return DEFAULT_REGIMES
    with open(path, "r") as f:
        return parse_regimes_csv(f.read())


@retry(
    stop=stop_after_attempt(3),
    wait=wait_fixed(1),
    retry=retry_if_exception_type(requests.exceptions.RequestException),
    reraise=True
)
def _call(method: str, url: str, **kwargs) -> Optional[dict]:
    """Sends one request to the pacer API, retrying transient failures."""
    response = requests.request(method, url, timeout=5, **kwargs)
    response.raise_for_status()
    return response.json() if response.content else None


def log_regime_change(elapsed_ms: float, regime: Regime):
    logger.info(f"-> Starting regime at {elapsed_ms:.0f} ms: {regime.model_dump(by_alias=True)}")


def run_remote(regimes: List[Regime], base_url: str, frame_ms: int) -> None:
    """
    Creates a session on the pacer API and ticks it at frame_ms intervals
    until it completes.
    """
    payload = {"regimes": [r.model_dump(by_alias=True) for r in regimes]}
    created = _call("POST", f"{base_url}/sessions", json=payload)
    session_url = f"{base_url}/sessions/{created['sessionId']}"
    logger.info(f"Created session {created['sessionId']} ({created['durationMs']:.0f} ms of track).")

    _call("POST", f"{session_url}/start")
    try:
        while True:
            guide = _call("POST", f"{session_url}/tick")
            for event in guide["fired"]:
                logger.info(f"-> Starting regime at {event['elapsedMs']:.0f} ms: {event['regime']}")
            logger.debug(f"t={guide['elapsedMs']:.0f} h={guide['height']:.2f} {guide['phase']}")
            if guide["completed"]:
                break
            time.sleep(frame_ms / 1000)
    except requests.exceptions.RequestException as e:
        logger.error(f"!! Session {created['sessionId']} aborted: {e}")
        return
    finally:
        try:
            _call("DELETE", session_url)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Could not delete session {created['sessionId']}: {e}")

    logger.info("--- Simulation finished ---")


def run_local(regimes: List[Regime], frame_ms: int) -> None:
    """Runs the same pacing loop in-process against a local engine."""
    engine = PlaybackEngine(regimes, clock=MonotonicClock())
    engine.subscribe(log_regime_change)
    done = engine.start()
    while not done.done():
        guide = engine.tick()
        logger.debug(f"t={guide.elapsed_ms:.0f} h={guide.height:.2f} {guide.phase}")
        time.sleep(frame_ms / 1000)
    logger.info(f"--- Simulation finished after {done.result():.0f} ms ---")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Drive a breath pacing session at a fixed frame rate.")
    parser.add_argument("--simulate", action="store_true", help="Drive a session on the running API.")
    parser.add_argument("--local", action="store_true", help="Drive an in-process engine instead of the API.")
    parser.add_argument("--regimes", help="CSV file of durationMs,breathsPerMinute,holdPos,randomize lines.")
    parser.add_argument("--url", default=settings.APP_URL, help="Base URL of the pacer API.")
    parser.add_argument("--frame-ms", type=int, default=settings.SIMULATOR_FRAME_MS, help="Tick interval in ms.")

    args = parser.parse_args()
    program = load_regimes(args.regimes)

    if args.local:
        run_local(program, args.frame_ms)
    elif args.simulate:
        run_remote(program, args.url.rstrip("/"), args.frame_ms)
    else:
        logger.info("To run the simulation, use the --simulate or --local flag.")
        logger.info("Example: python tools/simulate_session.py --local --regimes regimes.csv")
