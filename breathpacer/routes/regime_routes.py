import random
from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile

from breathpacer.compiler import compile_instructions, compile_regimes
from breathpacer.errors import InstructionParseError, RegimeValidationError
from breathpacer.logger import get_logger
from breathpacer.utils.models import CompileRequest, CompileResponse, CompiledTrack, UploadResponse
from breathpacer.utils.parsing import parse_instructions_csv, parse_regimes_csv

logger = get_logger(__name__)

router = APIRouter(tags=["Regimes"])

#-------- Helper functions--------
def rng_factory_for(seed: Optional[int]):
    """
    A fresh random source per regime. With a seed, each regime's source is
    seeded from one seeded stream, so a program is reproducible while
    identical regimes in it still breathe differently.
    """
    if seed is None:
        return random.Random
    seeds = random.Random(seed)
    return lambda: random.Random(seeds.getrandbits(64))

def validation_http_error(e: RegimeValidationError) -> HTTPException:
    logger.warning(f"Rejected regime {e.index}: {e.message}")
    detail = e.message if e.index is None else f"Regime {e.index}: {e.message}"
    return HTTPException(status_code=422, detail=detail)

def compile_response(compiled: CompiledTrack) -> CompileResponse:
    return CompileResponse(
        duration_ms=compiled.duration_ms,
        points=compiled.points,
        boundaries=compiled.boundaries,
    )

async def _read_upload(file: UploadFile) -> str:
    contents = await file.read()
    try:
        return contents.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.error(f"Failed to decode {file.filename}. Error: {e}")
        raise HTTPException(status_code=400, detail=f"Could not decode file: {e}")

#-------- Routes--------
@router.post("/regimes/compile", response_model=CompileResponse)
def compile_regime_program(data: CompileRequest):
    """
    Compiles a regime program into its breath track and boundary schedule
    without starting a session.
    """
    try:
        compiled = compile_regimes(data.regimes, rng_factory_for(data.seed))
    except RegimeValidationError as e:
        raise validation_http_error(e)
    return compile_response(compiled)

@router.post("/regimes/upload", response_model=UploadResponse)
async def upload_regimes(file: UploadFile = File(...), seed: Optional[int] = None):
    """
    Accepts a CSV file of `durationMs,breathsPerMinute,holdPos,randomize`
    lines and returns the parsed regimes with their compiled track.
    """
    logger.info(f"Received regime upload. File: {file.filename}")
    text = await _read_upload(file)
    try:
        regimes = parse_regimes_csv(text)
    except InstructionParseError as e:
        logger.error(f"Failed to parse file {file.filename}. Error: {e}")
        raise HTTPException(status_code=400, detail=f"Could not parse file: {e}")
    try:
        compiled = compile_regimes(regimes, rng_factory_for(seed))
    except RegimeValidationError as e:
        raise validation_http_error(e)

    return UploadResponse(
        regimes=regimes,
        duration_ms=compiled.duration_ms,
        points=compiled.points,
        boundaries=compiled.boundaries,
    )

@router.post("/instructions/upload", response_model=CompileResponse)
async def upload_instructions(file: UploadFile = File(...)):
    """
    Accepts a CSV file of explicit `duration,breathe` instructions and
    returns the track they describe.
    """
    logger.info(f"Received instruction upload. File: {file.filename}")
    text = await _read_upload(file)
    try:
        instructions = parse_instructions_csv(text)
    except InstructionParseError as e:
        logger.error(f"Failed to parse file {file.filename}. Error: {e}")
        raise HTTPException(status_code=400, detail=f"Could not parse file: {e}")
    try:
        compiled = compile_instructions(instructions)
    except RegimeValidationError as e:
        raise validation_http_error(e)
    return compile_response(compiled)
