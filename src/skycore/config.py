"""Runtime settings read from the environment (and a .env file, if present)."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from dotenv import load_dotenv

from skycore.visibility import SOLVERS, Solver

LOG = logging.getLogger(__name__)

_ROOT = Path(__file__).parent.parent.parent


class ConfigError(ValueError):
    """Environment variable holds an unusable value."""


@dataclass(frozen=True)
class Settings:
    """Resolved configuration."""

    data_dir: Path  # Ephemeris kernel + star catalogue cache
    ephemeris_kernel: str  # JPL SPK file name ("de421.bsp")
    rise_set_solver: Solver  # "iterative" or "linear"
    sky_radius: float  # Render sphere radius for cartesian output
    limiting_magnitude: float  # Faintest catalog star kept


def _float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables.

    Loads ``.env`` into ``os.environ`` first when reading the real environment.

    Args:
        environ: Mapping to read instead of ``os.environ`` (no .env loading).

    Returns:
        Settings with defaults for anything unset.

    Raises:
        ConfigError: On a malformed or out-of-range value.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    solver = environ.get("SKYCORE_RISE_SET_SOLVER", "iterative").strip().lower()
    if solver not in SOLVERS:
        raise ConfigError(
            f"SKYCORE_RISE_SET_SOLVER must be one of {SOLVERS}, got {solver!r}"
        )

    radius = _float(environ, "SKYCORE_SKY_RADIUS", 100.0)
    if radius <= 0:
        raise ConfigError(f"SKYCORE_SKY_RADIUS must be positive, got {radius}")

    settings = Settings(
        data_dir=Path(environ.get("SKYCORE_DATA_DIR") or _ROOT / "resources"),
        ephemeris_kernel=environ.get("SKYCORE_EPHEMERIS_KERNEL") or "de421.bsp",
        rise_set_solver=cast(Solver, solver),
        sky_radius=radius,
        limiting_magnitude=_float(environ, "SKYCORE_LIMITING_MAGNITUDE", 6.5),
    )
    LOG.debug("Loaded settings: %s", settings)
    return settings
