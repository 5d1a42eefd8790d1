"""Config — load simulation parameters from YAML files.

All tunable constants (grid size, initial population, albedos, pollution
rates, worker count) live in YAML and are parsed into typed dataclasses
here.  ``SimulationConfig`` is fixed for a run; ``Conditions`` is the small
frozen value the engine threads through every phase and may swap between
ticks.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path

import yaml

from daisyworld.daisies.daisy import Color


class ConfigError(ValueError):
    """Raised when a configuration value is out of range."""


class Luminosity(Enum):
    """Solar luminosity presets."""

    LOW = 0.6
    OUR = 1.0
    HIGH = 1.4

    @classmethod
    def parse(cls, value: str | Luminosity) -> Luminosity:
        """Look up a preset by (case-insensitive) name.

        Raises:
            ConfigError: If no preset has that name.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).upper()]
        except KeyError:
            names = ", ".join(p.name.lower() for p in cls)
            msg = f"unknown luminosity {value!r} (expected one of: {names})"
            raise ConfigError(msg) from None


@dataclass(frozen=True)
class Conditions:
    """Luminosity and albedo parameters in effect for one tick.

    Attributes:
        luminosity_preset: Solar luminosity preset; ``luminosity`` gives
            its numeric value.
        albedo_black: Albedo given to newly created black daisies.
        albedo_white: Albedo given to newly created white daisies.
        albedo_surface: Albedo of bare soil.
    """

    luminosity_preset: Luminosity = Luminosity.LOW
    albedo_black: float = 0.25
    albedo_white: float = 0.75
    albedo_surface: float = 0.4

    @property
    def luminosity(self) -> float:
        return self.luminosity_preset.value

    def albedo_of(self, color: Color) -> float:
        if color is Color.BLACK:
            return self.albedo_black
        return self.albedo_white


@dataclass
class SimulationConfig:
    """Top-level simulation configuration.

    Attributes:
        seed: RNG seed for deterministic replay.
        rows: Number of grid rows.
        cols: Number of grid columns.
        workers: Threads used to run each grid phase.
        percent_black: Initial share of patches holding black daisies.
        percent_white: Initial share of patches holding white daisies.
        albedo_black: Albedo of black daisies.
        albedo_white: Albedo of white daisies.
        albedo_surface: Albedo of bare soil.
        luminosity: Name of the solar luminosity preset.
        max_age: Age in ticks at which a daisy dies.
        diffuse_factor: Fraction of temperature kept and shared per tick.
        live_albedo: Heat occupied patches with the current per-colour
            albedo instead of the daisy's creation-time snapshot.
        initial_pollution_probability: Chance a patch starts polluted.
        pollution_event_period: Pollution events happen on ticks that are
            multiples of this.
        pollution_event_probability: Per-patch chance of an event on an
            event tick.
        pollution_event_low: Lower bound of event pollution values.
        pollution_event_high: Upper bound of event pollution values.
        occupied_cleaning_rate: Pollution removed per tick under a daisy.
        bare_cleaning_rate: Pollution removed per tick on bare soil.
        death_pollution: Pollution added where a daisy dies.
        pollution_suppresses_seeding: Scale the seeding threshold by
            ``1 - soil_pollution``.
    """

    seed: int = 42
    rows: int = 30
    cols: int = 30
    workers: int = 4

    percent_black: int = 20
    percent_white: int = 20
    albedo_black: float = 0.25
    albedo_white: float = 0.75
    albedo_surface: float = 0.4
    luminosity: str = "low"

    max_age: int = 25
    diffuse_factor: float = 0.5
    live_albedo: bool = False

    # Soil pollution
    initial_pollution_probability: float = 0.3
    pollution_event_period: int = 30
    pollution_event_probability: float = 0.3
    pollution_event_low: float = 0.4
    pollution_event_high: float = 1.0
    occupied_cleaning_rate: float = 0.005
    bare_cleaning_rate: float = 0.0008
    death_pollution: float = 0.1
    pollution_suppresses_seeding: bool = True

    @property
    def initial_black(self) -> int:
        return self.rows * self.cols * self.percent_black // 100

    @property
    def initial_white(self) -> int:
        return self.rows * self.cols * self.percent_white // 100

    def initial_conditions(self) -> Conditions:
        return Conditions(
            luminosity_preset=Luminosity.parse(self.luminosity),
            albedo_black=self.albedo_black,
            albedo_white=self.albedo_white,
            albedo_surface=self.albedo_surface,
        )

    def validate(self) -> None:
        """Reject out-of-range values.

        Raises:
            ConfigError: Describing the first invalid value found.
        """
        _check_types(self)
        if self.rows < 1 or self.cols < 1:
            msg = f"grid must be at least 1x1, got {self.rows}x{self.cols}"
            raise ConfigError(msg)
        if self.workers < 1:
            msg = f"workers must be >= 1, got {self.workers}"
            raise ConfigError(msg)
        for name in ("percent_black", "percent_white"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                msg = f"{name} must be within [0, 100], got {value}"
                raise ConfigError(msg)
        if self.percent_black + self.percent_white > 100:
            msg = (
                "percent_black + percent_white must not exceed 100, got "
                f"{self.percent_black + self.percent_white}"
            )
            raise ConfigError(msg)
        for name in (
            "albedo_black",
            "albedo_white",
            "albedo_surface",
            "diffuse_factor",
            "initial_pollution_probability",
            "pollution_event_probability",
            "pollution_event_low",
            "pollution_event_high",
        ):
            _check_unit(name, getattr(self, name))
        if self.pollution_event_low > self.pollution_event_high:
            msg = (
                f"pollution_event_low ({self.pollution_event_low}) exceeds "
                f"pollution_event_high ({self.pollution_event_high})"
            )
            raise ConfigError(msg)
        if self.max_age < 1:
            msg = f"max_age must be >= 1, got {self.max_age}"
            raise ConfigError(msg)
        if self.pollution_event_period < 1:
            msg = (
                "pollution_event_period must be >= 1, "
                f"got {self.pollution_event_period}"
            )
            raise ConfigError(msg)
        for name in ("occupied_cleaning_rate", "bare_cleaning_rate", "death_pollution"):
            if getattr(self, name) < 0:
                msg = f"{name} must be non-negative, got {getattr(self, name)}"
                raise ConfigError(msg)
        Luminosity.parse(self.luminosity)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Keys missing from the file keep their defaults.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ConfigError: If the file has keys this config does not know.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"unknown config keys in {path}: {', '.join(unknown)}"
            raise ConfigError(msg)
        return cls(**data)


_INT_FIELDS = (
    "seed",
    "rows",
    "cols",
    "workers",
    "percent_black",
    "percent_white",
    "max_age",
    "pollution_event_period",
)
_FLOAT_FIELDS = (
    "albedo_black",
    "albedo_white",
    "albedo_surface",
    "diffuse_factor",
    "initial_pollution_probability",
    "pollution_event_probability",
    "pollution_event_low",
    "pollution_event_high",
    "occupied_cleaning_rate",
    "bare_cleaning_rate",
    "death_pollution",
)
_BOOL_FIELDS = ("live_albedo", "pollution_suppresses_seeding")


def _check_types(config: SimulationConfig) -> None:
    """Reject values YAML parsed into the wrong type (bool is not a number)."""
    for name in _INT_FIELDS:
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, int):
            msg = f"{name} must be an integer, got {value!r}"
            raise ConfigError(msg)
    for name in _FLOAT_FIELDS:
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            msg = f"{name} must be a number, got {value!r}"
            raise ConfigError(msg)
    for name in _BOOL_FIELDS:
        value = getattr(config, name)
        if not isinstance(value, bool):
            msg = f"{name} must be true or false, got {value!r}"
            raise ConfigError(msg)
    if not isinstance(config.luminosity, str):
        msg = f"luminosity must be a preset name, got {config.luminosity!r}"
        raise ConfigError(msg)


def _check_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        msg = f"{name} must be within [0, 1], got {value}"
        raise ConfigError(msg)
