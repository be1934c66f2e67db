"""Fixed-star catalog loading (Hipparcos via skyfield)."""

import logging
from pathlib import Path

import pandas as pd
from skyfield.api import Loader
from skyfield.data import hipparcos

from skycore.models import EquatorialCoordinate, StarRecord

LOG = logging.getLogger(__name__)


def stars_from_dataframe(
    df: pd.DataFrame, limiting_magnitude: float = 6.5
) -> tuple[StarRecord, ...]:
    """Convert a Hipparcos-shaped DataFrame into StarRecords.

    Args:
        df: DataFrame indexed by HIP number with ``ra_degrees``,
            ``dec_degrees`` and ``magnitude`` columns.
        limiting_magnitude: Faintest magnitude to keep.

    Returns:
        StarRecords sorted brightest first. Rows without coordinates are dropped.
    """
    bright = df[df["magnitude"] <= limiting_magnitude]
    bright = bright.dropna(subset=["ra_degrees", "dec_degrees"])
    bright = bright.sort_values("magnitude", kind="stable")
    return tuple(
        StarRecord(
            hip=int(idx),
            equatorial=EquatorialCoordinate(
                right_ascension=float(row["ra_degrees"]) / 15.0,
                declination=float(row["dec_degrees"]),
            ),
            magnitude=float(row["magnitude"]),
        )
        for idx, row in bright.iterrows()
    )


def load_hipparcos(
    directory: Path | str, limiting_magnitude: float = 6.5
) -> tuple[StarRecord, ...]:
    """Load the Hipparcos main catalogue, downloading ``hip_main.dat`` if missing.

    Args:
        directory: Data directory shared with the ephemeris kernel.
        limiting_magnitude: Faintest magnitude to keep.

    Returns:
        StarRecords brighter than the limit.
    """
    loader = Loader(str(directory))
    with loader.open(hipparcos.URL) as f:
        df = hipparcos.load_dataframe(f)
    stars = stars_from_dataframe(df, limiting_magnitude)
    LOG.info("Loaded %d stars brighter than magnitude %.1f", len(stars), limiting_magnitude)
    return stars


def find_star(stars: tuple[StarRecord, ...], hip: int) -> StarRecord | None:
    """Look up a star by Hipparcos number."""
    return next((star for star in stars if star.hip == hip), None)
