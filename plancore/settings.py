from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from plancore.exceptions import ConfigurationError
from plancore.geometry import contract

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

CONFIG_ENV_VAR = "PLANCORE_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/default.yaml")


class TopologySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    junction_tolerance: float = Field(contract.JUNCTION_TOLERANCE, ge=0.0)
    intersection_epsilon: float = Field(contract.INTERSECTION_EPSILON, gt=0.0, le=1e-2)
    min_wall_length: float = Field(contract.MIN_WALL_LENGTH, ge=0.0)
    split_segments: bool = True


class RoomSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_room_area: float = Field(contract.MIN_ROOM_AREA, ge=0.0)
    merge_collinear: bool = True
    dedupe_tolerance: float = Field(contract.DEDUPE_TOLERANCE, ge=0.0)


class OpeningSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    snap_tolerance: float = Field(contract.OPENING_SNAP_TOLERANCE, ge=0.0)
    corner_clearance: float = Field(contract.CORNER_CLEARANCE, ge=0.0)
    opening_clearance: float = Field(contract.OPENING_CLEARANCE, ge=0.0)
    auto_clamp: bool = False
    max_opening_ratio: float = Field(contract.MAX_OPENING_RATIO, gt=0.0, le=1.0)
    window_sill_height: float = Field(contract.WINDOW_SILL_HEIGHT, ge=0.0)
    door_open_angle: float = Field(contract.DOOR_OPEN_ANGLE_DEG, gt=0.0, le=180.0)


class SnapSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    grid_size: float = contract.GRID_SIZE
    grid_enabled: bool = True
    tolerance: float = Field(contract.SNAP_TOLERANCE, ge=0.0)
    include_midpoints: bool = True

    @field_validator("grid_size", mode="before")
    @classmethod
    def _non_positive_grid_disables(cls, value: Any) -> float:
        # <= 0 is legal and means "no grid"; only reject non-numbers here
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("grid_size must be numeric") from exc


class Settings(BaseModel):
    topology: TopologySettings = Field(default_factory=TopologySettings)
    rooms: RoomSettings = Field(default_factory=RoomSettings)
    openings: OpeningSettings = Field(default_factory=OpeningSettings)
    snap: SnapSettings = Field(default_factory=SnapSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from a YAML configuration file.

        Args:
            path: Optional path to configuration file. If not provided, uses
                the PLANCORE_CONFIG environment variable or defaults to
                config/default.yaml.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            ConfigurationError: If the file does not exist or its payload is invalid.
        """
        config_path = path or Path(os.getenv(CONFIG_ENV_VAR, str(DEFAULT_CONFIG_PATH)))
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                {"path": str(config_path)},
            )
        with config_path.open("r", encoding="utf-8") as fp:
            try:
                payload = yaml.safe_load(fp) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping: {config_path}",
                {"path": str(config_path)},
            )
        try:
            return cls(**payload)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", {"path": str(config_path)}) from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "TopologySettings",
    "RoomSettings",
    "OpeningSettings",
    "SnapSettings",
    "get_settings",
]
