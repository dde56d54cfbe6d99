"""Drawability guard for frame parameter records.

A record is drawable when every field the derivation chain reads is a finite
number and sits in the range the trigonometry can handle:

- head_angle and seat_angle strictly between 0 and 90 degrees;
- wheelbase, chainstay, stack, reach, head_tube, seat_tube_length and
  wheel_size strictly positive;
- bb_drop and fork_rake may be zero or negative.

Missing or invalid data never raises; it is reported as issues on the
returned ``ParameterCheck`` so batches can skip the record and carry on.
Only a record of the wrong shape entirely (not a mapping) raises TypeError.
"""
from __future__ import annotations
import math
import numbers
from typing import Any, List, Mapping, Union

from . import schemas
from .schemas import IssueKind, ParameterIssue

ANGLE_FIELDS = ("head_angle", "seat_angle")
POSITIVE_FIELDS = ("wheelbase", "chainstay", "stack", "reach", "head_tube", "seat_tube_length", "wheel_size")


def is_number(value: Any) -> bool:
    # bool is an int subclass but never a measurement
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def as_float(value: Any) -> Union[float, None]:
    """float(value) for a number, None when it does not fit in a float."""
    try:
        return float(value)
    except OverflowError:
        return None


def _field_issue(field: str, value: Any) -> Union[ParameterIssue, None]:
    if value is None:
        return ParameterIssue(field=field, kind=IssueKind.MISSING_FIELD, message=f"{field} is missing")
    if not is_number(value):
        return ParameterIssue(field=field, kind=IssueKind.NON_NUMERIC, message=f"{field} is not a number: {value!r}")
    value = as_float(value)
    if value is None:
        return ParameterIssue(field=field, kind=IssueKind.OUT_OF_RANGE, message=f"{field} is too large to represent")
    if not math.isfinite(value):
        return ParameterIssue(field=field, kind=IssueKind.NON_NUMERIC, message=f"{field} is not finite: {value!r}")
    if field in ANGLE_FIELDS and not (0.0 < value < 90.0):
        return ParameterIssue(
            field=field,
            kind=IssueKind.OUT_OF_RANGE,
            message=f"{field} must be strictly between 0 and 90 degrees, got {value}",
        )
    if field in POSITIVE_FIELDS and value <= 0:
        return ParameterIssue(field=field, kind=IssueKind.OUT_OF_RANGE, message=f"{field} must be positive, got {value}")
    return None


def validate_parameters(record: Union[Mapping[str, Any], schemas.FrameParameters]) -> schemas.ParameterCheck:
    """Check a raw record (or an existing FrameParameters) for drawability."""
    if isinstance(record, schemas.FrameParameters):
        values: Mapping[str, Any] = record.model_dump()
    elif isinstance(record, Mapping):
        values = record
    else:
        raise TypeError(f"Frame parameters must be a mapping, got {type(record).__name__}")

    issues: List[ParameterIssue] = []
    for field in schemas.PARAMETER_FIELDS:
        issue = _field_issue(field, values.get(field))
        if issue is not None:
            issues.append(issue)

    if issues:
        return schemas.ParameterCheck(drawable=False, issues=issues)
    params = schemas.FrameParameters(**{f: float(values[f]) for f in schemas.PARAMETER_FIELDS})
    return schemas.ParameterCheck(drawable=True, parameters=params)


def is_drawable(record: Union[Mapping[str, Any], schemas.FrameParameters]) -> bool:
    return validate_parameters(record).drawable
