"""Configuration for the frame geometry solver.

Defaults live as module constants; ``load_settings`` overlays environment
variables on top of them:

    BIKEVIS_SEAT_POST_LENGTH         -> seat_post_length (mm)
    BIKEVIS_HANDLEBAR_POST_LENGTH    -> handlebar_post_length (mm)
    BIKEVIS_STEERING_AXIS            -> steering_axis_formulation ("reach_stack" | "axis_length")
    BIKEVIS_CHAINSTAY_HYPOTENUSE     -> chainstay_as_hypotenuse (bool)
    BIKEVIS_INCLUDE_COCKPIT          -> include_cockpit (bool)
    BIKEVIS_LOG_LEVEL                -> log_level
"""
from __future__ import annotations
import os
import logging
from enum import Enum
from typing import Dict, Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# Cockpit post lengths (mm)
DEFAULT_SEAT_POST_LENGTH = 140.0
DEFAULT_HANDLEBAR_POST_LENGTH = 100.0

ENV_PREFIX = "BIKEVIS_"

# Reference bicycle used when nothing else has been supplied
REFERENCE_BICYCLE: Dict[str, float] = {
    "wheelbase": 995,
    "bb_drop": 70,
    "chainstay": 410,
    "stack": 543,
    "reach": 390,
    "fork_rake": 45,
    "head_angle": 70,
    "head_tube": 140,
    "seat_tube_length": 520,
    "seat_angle": 74,
    "wheel_size": 340,
}


class SteeringAxisFormulation(str, Enum):
    """How the top of the steering axis is located."""
    # directly from bottom bracket via reach and stack
    REACH_STACK = "reach_stack"
    # via steering axis length solved from stack and head angle
    AXIS_LENGTH = "axis_length"


class SolverSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    seat_post_length: float = Field(DEFAULT_SEAT_POST_LENGTH, gt=0, description="Seat post extension above the seat tube (mm)")
    handlebar_post_length: float = Field(DEFAULT_HANDLEBAR_POST_LENGTH, gt=0, description="Steerer/stem extension above the head tube (mm)")
    steering_axis_formulation: SteeringAxisFormulation = SteeringAxisFormulation.REACH_STACK
    chainstay_as_hypotenuse: bool = Field(False, description="Treat chainstay as the hypotenuse of the rear triangle leg")
    include_cockpit: bool = True
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level {v!r}")
        return level


_ENV_FIELDS = {
    "SEAT_POST_LENGTH": "seat_post_length",
    "HANDLEBAR_POST_LENGTH": "handlebar_post_length",
    "STEERING_AXIS": "steering_axis_formulation",
    "CHAINSTAY_HYPOTENUSE": "chainstay_as_hypotenuse",
    "INCLUDE_COCKPIT": "include_cockpit",
    "LOG_LEVEL": "log_level",
}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> SolverSettings:
    """Build settings from defaults overlaid with ``BIKEVIS_*`` environment variables."""
    env = os.environ if environ is None else environ
    overrides = {}
    for suffix, field in _ENV_FIELDS.items():
        value = env.get(ENV_PREFIX + suffix)
        if value is not None and value != "":
            overrides[field] = value
    if overrides:
        logger.debug(f"Settings overrides from environment: {sorted(overrides)}")
    # pydantic coerces "140", "true", "axis_length" etc. to the field types
    return SolverSettings(**overrides)


DEFAULT_SETTINGS = SolverSettings()
