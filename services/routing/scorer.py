"""
Route exposure scoring: sample each route's polyline, estimate AQI per point, rank routes by mean AQI.
"""
import logging
from typing import List, Optional

from config import settings
from services.aqi.estimator import AQIEstimator, RandomSource, UniformRandomSource, round_half_up
from services.aqi.fanout import deadline_at, estimate_many, remaining
from services.geo.coordinates import Coordinate
from services.geo.distance import sample_route_points
from services.routing.directions import GoogleRoutesClient
from services.routing.mock_routes import build_mock_routes
from services.routing.models import CalculatedRoute, RouteWithAQI, pollution_level_for

logger = logging.getLogger(__name__)

# Score range used when a route cannot be scored from its sample points
FALLBACK_SCORE_RANGE = (20, 80)


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round_half_up(meters)} m"
    return f"{meters / 1000:.1f} km"


def format_duration(seconds: float) -> str:
    minutes = round_half_up(seconds / 60)
    if minutes < 60:
        return f"{minutes} min"
    return f"{minutes // 60}h {minutes % 60}min"


class RouteExposureScorer:
    """
    Scores candidate routes with an AQI estimator. Routing client, estimator and random
    source are injected; the scorer itself holds no per-request state.
    """

    def __init__(
        self,
        estimator: AQIEstimator,
        routing_client: Optional[GoogleRoutesClient] = None,
        random_source: Optional[RandomSource] = None,
        score_samples: Optional[int] = None,
        series_samples: Optional[int] = None,
        concurrency: Optional[int] = None,
        call_timeout: Optional[float] = None,
        deadline: Optional[float] = None,
    ):
        self.estimator = estimator
        self.routing_client = routing_client if routing_client is not None else GoogleRoutesClient()
        self.random_source = random_source if random_source is not None else UniformRandomSource()
        self.score_samples = score_samples or settings.route_score_samples
        self.series_samples = series_samples or settings.route_series_samples
        self.concurrency = concurrency or settings.estimator_concurrency
        self.call_timeout = call_timeout if call_timeout is not None else settings.estimator_call_timeout_s
        self.deadline = deadline if deadline is not None else settings.pipeline_deadline_s

    def calculate_routes(
        self,
        origin: Coordinate,
        destination: Coordinate,
        want_alternatives: bool = True,
    ) -> List[CalculatedRoute]:
        """Routes from the routing backend, or the three local mock routes if it fails."""
        result = self.routing_client.compute_routes(origin, destination, want_alternatives)
        if result.ok:
            return result.routes
        logger.warning("Routing unavailable (%s); using mock routes", result.error or "no routes")
        return build_mock_routes(origin, destination)

    def _fallback_score(self) -> int:
        lo, hi = FALLBACK_SCORE_RANGE
        return round_half_up(self.random_source.next(lo, hi))

    async def _estimate_points(self, points: List[Coordinate], deadline: Optional[float] = None):
        # deadline is absolute loop time shared by the pipeline; None starts a fresh budget
        if deadline is None:
            deadline = deadline_at(self.deadline)
        return await estimate_many(
            self.estimator,
            points,
            concurrency=self.concurrency,
            call_timeout=self.call_timeout,
            deadline=remaining(deadline),
        )

    async def score_route(self, route: CalculatedRoute, deadline: Optional[float] = None) -> int:
        """Rounded mean AQI over up to score_samples polyline points; random fallback on estimator failure."""
        samples = sample_route_points(route.polyline_coordinates, self.score_samples)
        fan = await self._estimate_points(samples, deadline)
        values = fan.completed
        if fan.failed or not values:
            score = self._fallback_score()
            logger.warning(
                "Could not score route %s (%s errors, %s samples); fallback score %s",
                route.id, len(fan.errors), len(values), score,
            )
            return score
        return round_half_up(sum(values) / len(values))

    async def aqi_series(self, route: CalculatedRoute, deadline: Optional[float] = None) -> List[int]:
        """AQI for up to series_samples polyline points, in route order (timed-out points skipped)."""
        samples = sample_route_points(route.polyline_coordinates, self.series_samples)
        fan = await self._estimate_points(samples, deadline)
        return fan.completed

    async def process_batch(self, routes: List[CalculatedRoute]) -> List[RouteWithAQI]:
        """
        Score every route, flag the lowest exposure score as safest (first wins on ties),
        return routes sorted ascending by exposure score.
        The whole batch shares one pipeline deadline; routes reached after it expires
        get the fallback score and an empty series.
        """
        deadline = deadline_at(self.deadline)
        scored: List[RouteWithAQI] = []
        for route in routes:
            exposure = await self.score_route(route, deadline)
            series = await self.aqi_series(route, deadline)
            scored.append(RouteWithAQI(
                route=route,
                exposure_score=exposure,
                pollution_level=pollution_level_for(exposure),
                aqi_along_route=series,
            ))
        if scored:
            safest = min(scored, key=lambda r: r.exposure_score)
            safest.is_safest = True
            logger.info("Scored %s routes; safest %s (score %s)", len(scored), safest.id, safest.exposure_score)
        return sorted(scored, key=lambda r: r.exposure_score)
