"""
AQI heatmap generation over a bounding box: regular grid, hourly forecast grids, render overlay.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

from config import settings
from services.aqi.categories import color_for
from services.aqi.estimator import AQIEstimator, TimeFilter
from services.aqi.fanout import deadline_at, estimate_many, remaining
from services.geo.coordinates import BoundingBox, Coordinate
from services.heatmap.models import DEFAULT_CONFIG, AQIHeatmapPoint, normalize_intensity

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    """Aware wall-clock time in the server's local zone; rush hour and weekends are local notions."""
    return datetime.now().astimezone()


def grid_coordinates(bounds: BoundingBox, grid_size: int) -> List[Coordinate]:
    """(grid_size + 1)^2 coordinates, row-major: latitude index outer, longitude index inner."""
    ne, sw = bounds.northeast, bounds.southwest
    lat_step = (ne.latitude - sw.latitude) / grid_size
    lng_step = (ne.longitude - sw.longitude) / grid_size
    return [
        Coordinate(sw.latitude + i * lat_step, sw.longitude + j * lng_step)
        for i in range(grid_size + 1)
        for j in range(grid_size + 1)
    ]


def generate_overlay(points: Sequence[AQIHeatmapPoint], **overrides: Any) -> List[Dict[str, Any]]:
    """Per-point render markers (weight, radius, opacity, color) from the default config plus overrides."""
    cfg = {"radius": DEFAULT_CONFIG.radius, "opacity": DEFAULT_CONFIG.opacity}
    cfg.update({k: v for k, v in overrides.items() if k in cfg})
    return [
        {
            "coordinate": p.coordinate.to_dict(),
            "weight": p.intensity,
            "radius": cfg["radius"],
            "opacity": cfg["opacity"],
            "color": color_for(p.aqi),
        }
        for p in points
    ]


class HeatmapGenerator:
    """Builds heatmap grids with an injected estimator and clock."""

    def __init__(
        self,
        estimator: AQIEstimator,
        clock: Optional[Callable[[], datetime]] = None,
        concurrency: Optional[int] = None,
        call_timeout: Optional[float] = None,
        deadline: Optional[float] = None,
    ):
        self.estimator = estimator
        self.clock = clock or local_now
        self.concurrency = concurrency or settings.estimator_concurrency
        self.call_timeout = call_timeout if call_timeout is not None else settings.estimator_call_timeout_s
        self.deadline = deadline if deadline is not None else settings.pipeline_deadline_s

    async def generate_grid(
        self,
        bounds: BoundingBox,
        grid_size: Optional[int] = None,
        time_filter: Optional[TimeFilter] = None,
        deadline: Optional[float] = None,
    ) -> List[AQIHeatmapPoint]:
        """
        Sample the estimator on a (grid_size + 1)^2 lattice covering bounds, corners included.
        Raises InvalidBoundingBoxError for inverted bounds and ValueError for grid_size < 1.
        Cells whose estimate timed out or failed are left out. deadline is an absolute
        loop time shared with an enclosing pipeline; None gives this grid its own budget.
        """
        grid_size = grid_size if grid_size is not None else settings.heatmap_grid_size
        bounds.validate()
        if grid_size < 1:
            raise ValueError(f"grid_size must be >= 1, got {grid_size}")
        coords = grid_coordinates(bounds, grid_size)
        if deadline is None:
            deadline = deadline_at(self.deadline)
        fan = await estimate_many(
            self.estimator,
            coords,
            time_filter,
            concurrency=self.concurrency,
            call_timeout=self.call_timeout,
            deadline=remaining(deadline),
        )
        stamp = self.clock()
        points = [
            AQIHeatmapPoint(coordinate=c, aqi=aqi, intensity=normalize_intensity(aqi), timestamp=stamp)
            for c, aqi in zip(coords, fan.values)
            if aqi is not None
        ]
        if len(points) < len(coords):
            logger.warning("Heatmap grid partial: %s of %s cells", len(points), len(coords))
        return points

    async def generate_forecast(
        self,
        bounds: BoundingBox,
        forecast_hours: Optional[int] = None,
        grid_size: Optional[int] = None,
    ) -> List[List[AQIHeatmapPoint]]:
        """
        One grid per hour 0..forecast_hours-1 from now, each modulated by that hour's TimeFilter.
        All hours share one pipeline deadline; hours reached after it expires come back empty.
        """
        forecast_hours = forecast_hours if forecast_hours is not None else settings.forecast_hours
        grid_size = grid_size if grid_size is not None else settings.forecast_grid_size
        bounds.validate()
        now = self.clock()
        deadline = deadline_at(self.deadline)
        grids: List[List[AQIHeatmapPoint]] = []
        for hour in range(forecast_hours):
            time_filter = TimeFilter.from_datetime(now + timedelta(hours=hour))
            grids.append(await self.generate_grid(bounds, grid_size, time_filter, deadline))
        logger.info("Generated %s forecast grids (grid_size=%s)", len(grids), grid_size)
        return grids
