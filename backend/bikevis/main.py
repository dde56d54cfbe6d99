from typing import Any, Dict, List
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from . import schemas
from .comparison import compute_batch, sort_by_stack, summarise_batch
from .config import REFERENCE_BICYCLE, load_settings
from .solver import compute_frame_points
import logging

settings = load_settings()

logger = logging.getLogger("bikevis")
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
    logger.addHandler(handler)
logger.setLevel(settings.log_level)

app = FastAPI(title="Bicycle Frame Geometry API", version="0.1.0")

# Allow all origins (read-only geometry endpoints)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
async def health():
    return {"status": "ok"}

@app.get("/defaults", response_model=schemas.DefaultsResponse)
async def defaults():
    """Reference bicycle and the solver settings this process runs with."""
    return schemas.DefaultsResponse(parameters=dict(REFERENCE_BICYCLE), settings=settings)

@app.post("/frame-points", response_model=schemas.FrameResult)
async def frame_points(payload: schemas.FramePointsRequest):
    """Solve a single record. Not-drawable records still return 200 with issues."""
    try:
        return compute_frame_points(payload.parameters, payload.origin, settings)
    except TypeError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/compare", response_model=schemas.ComparisonResult)
async def compare(payload: schemas.CompareRequest):
    """Solve many records ordered by stack, skipping the ones that cannot be drawn."""
    try:
        frames = compute_batch(payload.bikes, payload.origin, settings)
    except TypeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    result = summarise_batch(frames)
    logger.info(f"Compared {result.total} bikes ({result.skipped} skipped)")
    return result

@app.post("/sort", response_model=List[Dict[str, Any]])
async def sort_records(records: List[Dict[str, Any]]):
    """Return records ordered by stack; ties keep their order, records without a stack go last."""
    return sort_by_stack(records)

# To run (dev): uvicorn bikevis.main:app --reload --app-dir backend
