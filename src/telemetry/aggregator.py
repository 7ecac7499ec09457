"""Windowed telemetry statistics and retention."""

import logging
import math
from datetime import timedelta
from itertools import pairwise

from src.constants import DEFAULT_RETENTION_DAYS, DEFAULT_STATS_WINDOW_HOURS, EARTH_RADIUS_KM
from src.exceptions.client_errors import ValidationError
from src.telemetry.models import TelemetrySample, TelemetryStats
from src.telemetry.repository import TelemetryRepository
from src.types import Clock
from src.utils.timestamps import get_utc_now

logger = logging.getLogger(__name__)


def calculate_haversine_distance(
    start_latitude: float,
    start_longitude: float,
    end_latitude: float,
    end_longitude: float,
) -> float:
    """Great-circle distance between two points, in kilometres."""
    latitude_delta = math.radians(end_latitude - start_latitude)
    longitude_delta = math.radians(end_longitude - start_longitude)
    chord = (
        math.sin(latitude_delta / 2) ** 2
        + math.cos(math.radians(start_latitude))
        * math.cos(math.radians(end_latitude))
        * math.sin(longitude_delta / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(chord), math.sqrt(1 - chord))


def calculate_path_distance(samples: list[TelemetrySample]) -> float:
    """Sum of great-circle legs between consecutive samples, in kilometres."""
    return sum(
        calculate_haversine_distance(
            previous.latitude, previous.longitude, current.latitude, current.longitude
        )
        for previous, current in pairwise(samples)
    )


def round_half_up(value: float) -> float:
    """Round to 2 decimals; exact halves go up rather than to the even digit."""
    return math.floor(value * 100 + 0.5) / 100


def _calculate_mean(values: list[float]) -> float:
    return round_half_up(sum(values) / len(values))


class TelemetryAggregator:
    """Computes statistics over, and prunes, stored telemetry."""

    def __init__(
        self,
        telemetry: TelemetryRepository,
        *,
        clock: Clock = get_utc_now,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ) -> None:
        """Initialize the aggregator.

        Args:
            telemetry: Sample storage.
            clock: Returns the current aware UTC time.
            retention_days: Default age threshold for the retention sweep.
        """
        self._telemetry = telemetry
        self._clock = clock
        self._retention_days = retention_days

    def get_stats(self, drone_id: str, hours: int = DEFAULT_STATS_WINDOW_HOURS) -> TelemetryStats:
        """Aggregate a drone's samples from the last ``hours`` hours.

        An empty window yields all-zero statistics, not an error.

        Raises:
            ValidationError: If ``hours`` is not positive.
        """
        if hours <= 0:
            raise ValidationError("hours must be positive", field="hours", value=hours)

        window_start = self._clock() - timedelta(hours=hours)
        samples = self._telemetry.list_since(drone_id, window_start)
        if not samples:
            return TelemetryStats()

        return TelemetryStats(
            avg_battery=_calculate_mean([sample.battery for sample in samples]),
            avg_speed=_calculate_mean([sample.speed for sample in samples]),
            avg_altitude=_calculate_mean([sample.altitude for sample in samples]),
            total_distance=round_half_up(calculate_path_distance(samples)),
            data_points=len(samples),
        )

    def run_retention_sweep(self, days: int | None = None) -> int:
        """Delete samples older than ``days`` days (default: configured retention).

        Returns:
            Number of samples deleted.

        Raises:
            ValidationError: If ``days`` is not positive.
        """
        retention_days = self._retention_days if days is None else days
        if retention_days <= 0:
            raise ValidationError("days must be positive", field="days", value=retention_days)

        cutoff = self._clock() - timedelta(days=retention_days)
        deleted = self._telemetry.delete_older_than(cutoff)
        logger.info(
            "Telemetry retention sweep finished",
            extra={"deleted": deleted, "cutoff": cutoff.isoformat(), "retention_days": retention_days},
        )
        return deleted
