"""Multi-bike ordering and batch solving for side-by-side comparison."""
from __future__ import annotations
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union
import math
import logging

from . import schemas
from .config import SolverSettings
from .solver import compute_frame_points
from .validation import as_float, is_number

logger = logging.getLogger(__name__)

T = TypeVar("T")

BatchInput = Union[Mapping[str, Any], Iterable[Union[Tuple[str, Any], schemas.BikeRecord]]]


def _stack_of(record: Any) -> Optional[float]:
    if isinstance(record, schemas.BikeRecord):
        record = record.parameters
    elif isinstance(record, tuple) and len(record) == 2 and isinstance(record[1], (Mapping, schemas.FrameParameters)):
        # (id, record) pair, whatever the id type
        record = record[1]
    if isinstance(record, Mapping):
        value = record.get("stack")
    else:
        value = getattr(record, "stack", None)
    if not is_number(value):
        return None
    value = as_float(value)
    if value is not None and math.isfinite(value):
        return value
    return None


def _stack_key(record: Any) -> Tuple[int, float]:
    stack = _stack_of(record)
    # records without a usable stack go last
    return (0, stack) if stack is not None else (1, 0.0)


def sort_by_stack(records: Iterable[T]) -> List[T]:
    """Order records ascending by stack. Stable: ties keep their input order.

    Accepts FrameParameters, raw mappings, BikeRecords or (id, record) pairs.
    """
    return sorted(records, key=_stack_key)


def _pairs(records: BatchInput) -> List[Tuple[str, Any]]:
    if isinstance(records, Mapping):
        return [(str(k), v) for k, v in records.items()]
    pairs: List[Tuple[str, Any]] = []
    for item in records:
        if isinstance(item, schemas.BikeRecord):
            pairs.append((item.id, item.parameters))
        elif isinstance(item, tuple) and len(item) == 2:
            pairs.append((str(item[0]), item[1]))
        else:
            raise TypeError(f"Batch entries must be (id, record) pairs, got {type(item).__name__}")
    return pairs


def compute_batch(
    records: BatchInput,
    origin: schemas.Point = schemas.ORIGIN,
    settings: Optional[SolverSettings] = None,
) -> List[schemas.BikeFrame]:
    """Solve every record independently, ordered by stack.

    Non-drawable records stay in the output with their issues; they never
    stop the rest of the batch.
    """
    frames: List[schemas.BikeFrame] = []
    for bike_id, record in sort_by_stack(_pairs(records)):
        if not isinstance(record, (Mapping, schemas.FrameParameters)):
            raise TypeError(f"Bike {bike_id!r}: record must be a mapping, got {type(record).__name__}")
        result = compute_frame_points(record, origin, settings)
        if not result.drawable:
            logger.info(f"Could not draw bike {bike_id}: {result.reason}")
        frames.append(schemas.BikeFrame(id=bike_id, stack=_stack_of(record), result=result))
    return frames


def drawable_frames(frames: Sequence[schemas.BikeFrame]) -> List[schemas.BikeFrame]:
    return [f for f in frames if f.result.drawable]


def summarise_batch(frames: Sequence[schemas.BikeFrame]) -> schemas.ComparisonResult:
    drawable = len(drawable_frames(frames))
    return schemas.ComparisonResult(
        bikes=list(frames),
        total=len(frames),
        drawable=drawable,
        skipped=len(frames) - drawable,
    )
