from __future__ import annotations
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from .config import SolverSettings

PARAMETER_FIELDS: Tuple[str, ...] = (
    "wheelbase",
    "bb_drop",
    "chainstay",
    "stack",
    "reach",
    "fork_rake",
    "head_angle",
    "head_tube",
    "seat_tube_length",
    "seat_angle",
    "wheel_size",
)

FRAME_POINT_NAMES: Tuple[str, ...] = (
    "rear_wheel",
    "front_wheel",
    "bottom_bracket",
    "steering_axis_bottom",
    "steering_axis_top",
    "head_tube_bottom",
    "seat_tube_top",
)

COCKPIT_POINT_NAMES: Tuple[str, ...] = ("seat_post_top", "handlebar_post_top")


class Point(BaseModel):
    """2D point. x grows towards the front wheel, y grows downwards."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    def offset(self, dx: float, dy: float) -> Point:
        return Point(x=self.x + dx, y=self.y + dy)

    def distance_to(self, other: Point) -> float:
        return float(np.hypot(other.x - self.x, other.y - self.y))


ORIGIN = Point(x=0.0, y=0.0)


class FrameParameters(BaseModel):
    """The eleven frame measurements a skeleton is derived from (mm / degrees)."""
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    wheelbase: float = Field(..., description="Front to rear axle, centre to centre")
    bb_drop: float = Field(..., description="Bottom bracket drop below the axle line")
    chainstay: float = Field(..., description="Rear axle to bottom bracket centre")
    stack: float = Field(..., description="Vertical, bottom bracket to top of head tube")
    reach: float = Field(..., description="Horizontal, bottom bracket to top of head tube")
    fork_rake: float = Field(..., description="Offset of the front axle from the steering axis")
    head_angle: float = Field(..., description="Steering axis angle from horizontal (degrees)")
    head_tube: float = Field(..., description="Head tube length along the steering axis")
    seat_tube_length: float = Field(..., description="Seat tube length")
    seat_angle: float = Field(..., description="Seat tube angle from horizontal (degrees)")
    wheel_size: float = Field(..., description="Wheel radius, used for wheel circles")


class IssueKind(str, Enum):
    MISSING_FIELD = "missing_field"
    NON_NUMERIC = "non_numeric"
    OUT_OF_RANGE = "out_of_range"
    DEGENERATE_GEOMETRY = "degenerate_geometry"


class ParameterIssue(BaseModel):
    field: Optional[str] = None
    kind: IssueKind
    message: str


class ParameterCheck(BaseModel):
    """Outcome of the drawability guard."""
    drawable: bool
    parameters: Optional[FrameParameters] = None
    issues: List[ParameterIssue] = []

    @property
    def reason(self) -> Optional[str]:
        if not self.issues:
            return None
        return "; ".join(issue.message for issue in self.issues)


class Bounds(BaseModel):
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


class FramePoints(BaseModel):
    """Derived skeleton of one frame. Read-only once computed."""
    model_config = ConfigDict(frozen=True)

    rear_wheel: Point
    front_wheel: Point
    bottom_bracket: Point
    steering_axis_bottom: Point
    steering_axis_top: Point
    head_tube_bottom: Point
    seat_tube_top: Point
    seat_post_top: Optional[Point] = None
    handlebar_post_top: Optional[Point] = None

    def named_points(self) -> Iterator[Tuple[str, Point]]:
        """Yield (name, point) in derivation order, skipping absent cockpit points."""
        for name in FRAME_POINT_NAMES + COCKPIT_POINT_NAMES:
            p = getattr(self, name)
            if p is not None:
                yield name, p

    def translated(self, dx: float, dy: float) -> FramePoints:
        return FramePoints(**{name: p.offset(dx, dy) for name, p in self.named_points()})

    def centred_on_bottom_bracket(self, target: Point = ORIGIN) -> FramePoints:
        return self.translated(target.x - self.bottom_bracket.x, target.y - self.bottom_bracket.y)

    def bounds(self, wheel_radius: float = 0.0) -> Bounds:
        """Bounding box of every point plus both wheel circles."""
        coords = np.array([[p.x, p.y] for _, p in self.named_points()], dtype=float)
        wheels = np.array([[self.rear_wheel.x, self.rear_wheel.y], [self.front_wheel.x, self.front_wheel.y]], dtype=float)
        r = abs(wheel_radius)
        lo = np.minimum(coords.min(axis=0), (wheels - r).min(axis=0))
        hi = np.maximum(coords.max(axis=0), (wheels + r).max(axis=0))
        return Bounds(min_x=lo[0], min_y=lo[1], max_x=hi[0], max_y=hi[1])


class FrameResult(BaseModel):
    """Tagged solver outcome: points when drawable, issues otherwise."""
    drawable: bool
    points: Optional[FramePoints] = None
    bounds: Optional[Bounds] = None
    issues: List[ParameterIssue] = []

    @property
    def reason(self) -> Optional[str]:
        if not self.issues:
            return None
        return "; ".join(issue.message for issue in self.issues)


class BikeFrame(BaseModel):
    id: str
    stack: Optional[float] = None
    result: FrameResult


class ComparisonResult(BaseModel):
    bikes: List[BikeFrame]
    total: int
    drawable: int
    skipped: int


# ----------------------------- API payloads -----------------------------

class BikeRecord(BaseModel):
    id: str
    parameters: Dict[str, Any]


class FramePointsRequest(BaseModel):
    parameters: Dict[str, Any]
    origin: Point = ORIGIN


class CompareRequest(BaseModel):
    bikes: Union[Dict[str, Dict[str, Any]], List[BikeRecord]]
    origin: Point = ORIGIN


class DefaultsResponse(BaseModel):
    parameters: Dict[str, float]
    settings: SolverSettings
