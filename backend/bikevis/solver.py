"""Frame point solver for the classic double-triangle bicycle frame.

Turns the eleven frame measurements into 2D coordinates for the wheel
centres, bottom bracket, steering axis, head tube, seat tube and (optionally)
the cockpit posts. Each point depends only on points derived before it plus
the raw parameters:

    rear_wheel, front_wheel        <- origin, wheelbase
    bottom_bracket                 <- rear_wheel, chainstay, bb_drop
    steering_axis_bottom           <- front_wheel, fork_rake, head_angle
    steering_axis_top              <- bottom_bracket / steering_axis_bottom, stack, reach
    head_tube_bottom               <- steering_axis_top, head_tube, head_angle
    seat_tube_top                  <- bottom_bracket, seat_tube_length, seat_angle
    seat_post_top                  <- seat_tube_top, seat post length, seat_angle
    handlebar_post_top             <- steering_axis_top, handlebar post length, head_angle

Conventions:
- Screen coordinates: x towards the front wheel, y downwards. The bottom
  bracket therefore sits at +bb_drop and the head tube at negative y.
- Angles are degrees from horizontal, converted to radians before use.
- The origin is the midpoint of the axle line; callers re-anchor the result
  (e.g. on the bottom bracket) as they see fit.

Not a constraint solver: no buildability checks, fixed evaluation order.
"""
from __future__ import annotations
from typing import Mapping, Tuple, Union
import math
import logging

from . import schemas
from .config import DEFAULT_SETTINGS, SolverSettings, SteeringAxisFormulation
from .schemas import FrameParameters, Point
from .validation import validate_parameters

logger = logging.getLogger(__name__)

# Relative slack allowed on a square-root operand before it counts as negative
RADICAND_TOLERANCE = 1e-9


class FrameGeometryError(Exception):
    pass


class DegenerateGeometryError(FrameGeometryError):
    """Parameters produce an undefined trigonometric result."""
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


def _sin_deg(angle: float, field: str) -> float:
    s = math.sin(math.radians(angle))
    if abs(s) < 1e-12:
        raise DegenerateGeometryError(f"sin({field}) is zero", field=field)
    return s


def _leg(hypotenuse: float, other: float, field: str) -> float:
    """Remaining leg of a right triangle, rejecting a negative radicand."""
    # factored form: overflows to inf instead of raising like ** does
    radicand = (hypotenuse - other) * (hypotenuse + other)
    if radicand < 0:
        larger = max(abs(hypotenuse), abs(other), 1.0)
        scale = larger * larger
        if radicand < -RADICAND_TOLERANCE * scale:
            raise DegenerateGeometryError(
                f"{field}: cannot take square root of negative value {radicand:.6g}", field=field
            )
        # rounding only
        radicand = 0.0
    return math.sqrt(radicand)


def _axis_offset(length: float, angle: float, field: str) -> Tuple[float, float]:
    """(x_off, y_off) of a tube of ``length`` leaning at ``angle`` degrees."""
    y_off = math.sin(math.radians(angle)) * length
    x_off = _leg(length, y_off, field)
    return x_off, y_off


def find_rear_wheel(params: FrameParameters, origin: Point) -> Point:
    return origin.offset(-params.wheelbase / 2, 0.0)


def find_front_wheel(params: FrameParameters, origin: Point) -> Point:
    return origin.offset(params.wheelbase / 2, 0.0)


def find_bottom_bracket(params: FrameParameters, rear_wheel: Point, chainstay_as_hypotenuse: bool = False) -> Point:
    """Bottom bracket from the rear axle via Pythagoras.

    By default the horizontal offset is sqrt(chainstay^2 + bb_drop^2). With
    ``chainstay_as_hypotenuse`` it is sqrt(chainstay^2 - bb_drop^2), which keeps
    the axle-to-BB distance equal to the chainstay.
    """
    if chainstay_as_hypotenuse:
        dx = _leg(params.chainstay, params.bb_drop, "chainstay")
    else:
        dx = math.hypot(params.chainstay, params.bb_drop)
    return rear_wheel.offset(dx, params.bb_drop)


def find_steering_axis_bottom(params: FrameParameters, front_wheel: Point) -> Point:
    # rake resolved onto the axle line
    return front_wheel.offset(-params.fork_rake / _sin_deg(params.head_angle, "head_angle"), 0.0)


def find_steering_axis_top(
    params: FrameParameters,
    bottom_bracket: Point,
    steering_axis_bottom: Point,
    formulation: SteeringAxisFormulation = SteeringAxisFormulation.REACH_STACK,
) -> Point:
    rise = params.stack - params.bb_drop
    if formulation == SteeringAxisFormulation.REACH_STACK:
        return Point(x=bottom_bracket.x + params.reach, y=steering_axis_bottom.y - rise)
    if formulation == SteeringAxisFormulation.AXIS_LENGTH:
        axis_length = rise / _sin_deg(params.head_angle, "head_angle")
        run = _leg(axis_length, rise, "stack")
        return steering_axis_bottom.offset(-run, -rise)
    raise FrameGeometryError(f"Unknown steering axis formulation {formulation!r}")


def find_head_tube_bottom(params: FrameParameters, steering_axis_top: Point) -> Point:
    x_off, y_off = _axis_offset(params.head_tube, params.head_angle, "head_tube")
    return steering_axis_top.offset(x_off, y_off)


def find_seat_tube_top(params: FrameParameters, bottom_bracket: Point) -> Point:
    x_off, y_off = _axis_offset(params.seat_tube_length, params.seat_angle, "seat_tube_length")
    return bottom_bracket.offset(-x_off, -y_off)


def find_seat_post_top(params: FrameParameters, seat_tube_top: Point, post_length: float) -> Point:
    x_off, y_off = _axis_offset(post_length, params.seat_angle, "seat_post_length")
    return seat_tube_top.offset(-x_off, -y_off)


def find_handlebar_post_top(params: FrameParameters, steering_axis_top: Point, post_length: float) -> Point:
    x_off, y_off = _axis_offset(post_length, params.head_angle, "handlebar_post_length")
    return steering_axis_top.offset(-x_off, -y_off)


def _as_point(origin: Union[Point, Tuple[float, float]]) -> Point:
    if isinstance(origin, Point):
        return origin
    x, y = origin
    return Point(x=x, y=y)


def solve_frame_points(
    params: FrameParameters,
    origin: Union[Point, Tuple[float, float]] = schemas.ORIGIN,
    settings: SolverSettings = DEFAULT_SETTINGS,
) -> schemas.FramePoints:
    """Derive every frame point. Raises DegenerateGeometryError on undefined trig."""
    try:
        points = _derive_points(params, _as_point(origin), settings)
    except OverflowError as e:
        raise DegenerateGeometryError(f"Frame geometry overflowed: {e}") from e
    for name, p in points.named_points():
        if not (math.isfinite(p.x) and math.isfinite(p.y)):
            raise DegenerateGeometryError(f"{name} is not finite ({p.x}, {p.y})")
    return points


def _derive_points(params: FrameParameters, origin: Point, settings: SolverSettings) -> schemas.FramePoints:
    rear_wheel = find_rear_wheel(params, origin)
    front_wheel = find_front_wheel(params, origin)
    bottom_bracket = find_bottom_bracket(params, rear_wheel, settings.chainstay_as_hypotenuse)
    steering_axis_bottom = find_steering_axis_bottom(params, front_wheel)
    steering_axis_top = find_steering_axis_top(
        params, bottom_bracket, steering_axis_bottom, settings.steering_axis_formulation
    )
    head_tube_bottom = find_head_tube_bottom(params, steering_axis_top)
    seat_tube_top = find_seat_tube_top(params, bottom_bracket)

    seat_post_top = None
    handlebar_post_top = None
    if settings.include_cockpit:
        seat_post_top = find_seat_post_top(params, seat_tube_top, settings.seat_post_length)
        handlebar_post_top = find_handlebar_post_top(params, steering_axis_top, settings.handlebar_post_length)

    return schemas.FramePoints(
        rear_wheel=rear_wheel,
        front_wheel=front_wheel,
        bottom_bracket=bottom_bracket,
        steering_axis_bottom=steering_axis_bottom,
        steering_axis_top=steering_axis_top,
        head_tube_bottom=head_tube_bottom,
        seat_tube_top=seat_tube_top,
        seat_post_top=seat_post_top,
        handlebar_post_top=handlebar_post_top,
    )


def _not_drawable(issues) -> schemas.FrameResult:
    return schemas.FrameResult(drawable=False, issues=list(issues))


def compute_frame_points(
    params: Union[FrameParameters, Mapping],
    origin: Union[Point, Tuple[float, float]] = schemas.ORIGIN,
    settings: SolverSettings | None = None,
) -> schemas.FrameResult:
    """Validate then solve. Never raises for missing or degenerate data."""
    if settings is None:
        settings = DEFAULT_SETTINGS
    elif not isinstance(settings, SolverSettings):
        raise TypeError(f"settings must be SolverSettings, got {type(settings).__name__}")

    check = validate_parameters(params)
    if not check.drawable:
        return _not_drawable(check.issues)

    try:
        points = solve_frame_points(check.parameters, origin, settings)
    except DegenerateGeometryError as e:
        logger.warning(f"Degenerate frame geometry: {e}")
        return _not_drawable([
            schemas.ParameterIssue(field=e.field, kind=schemas.IssueKind.DEGENERATE_GEOMETRY, message=str(e))
        ])
    return schemas.FrameResult(drawable=True, points=points, bounds=points.bounds(check.parameters.wheel_size))
