"""
HTTP surface for route air-quality exposure and AQI heatmaps.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from cache import get_or_compute, key_heatmap, key_route_aqi
from config import settings
from services.aqi.categories import category_for, color_for
from services.aqi.estimator import SyntheticAQIEstimator, TimeFilter, UniformRandomSource
from services.aqi.history import historical_series
from services.geo.coordinates import BoundingBox, Coordinate, InvalidBoundingBoxError
from services.heatmap.analysis import (
    DEFAULT_PROXIMITY_DEG,
    find_hotspots,
    region_average,
    route_exposure_from_grid,
)
from services.heatmap.generator import HeatmapGenerator, generate_overlay, local_now
from services.heatmap.models import get_config
from services.routing.directions import GoogleRoutesClient
from services.routing.scorer import RouteExposureScorer, format_distance, format_duration

logger = logging.getLogger(__name__)

# Upper bound on route points accepted by /api/heatmap/route_exposure
MAX_ROUTE_POINTS = 1000


# -----------------------------
# Services (built once per app, injected via Depends)
# -----------------------------
def build_services() -> Dict[str, Any]:
    random_source = UniformRandomSource()
    estimator = SyntheticAQIEstimator(random_source)
    return {
        "estimator": estimator,
        "scorer": RouteExposureScorer(estimator, GoogleRoutesClient(), random_source),
        "heatmap": HeatmapGenerator(estimator, clock=local_now),
    }


def _connect_redis() -> Optional[Any]:
    url = (settings.redis_url or "").strip()
    if not url:
        return None
    try:
        import redis.asyncio as aioredis
        return aioredis.from_url(url, decode_responses=True)
    except Exception as e:
        logger.warning("Redis unavailable, caching disabled: %s", e)
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.services = build_services()
    app.state.redis = _connect_redis()
    yield
    if app.state.redis is not None:
        await app.state.redis.close()


app = FastAPI(title="AirRoute AQI API", version="0.1.0", lifespan=lifespan)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def get_scorer(request: Request) -> RouteExposureScorer:
    return request.app.state.services["scorer"]


def get_heatmap(request: Request) -> HeatmapGenerator:
    return request.app.state.services["heatmap"]


def get_estimator(request: Request) -> Any:
    return request.app.state.services["estimator"]


def get_redis(request: Request) -> Optional[Any]:
    return getattr(request.app.state, "redis", None)


# -----------------------------
# Schemas
# -----------------------------
class LatLon(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)


class RouteAQIRequest(BaseModel):
    origin: LatLon
    destination: LatLon
    alternatives: bool = True


class RouteExposureRequest(BaseModel):
    points: List[LatLon] = Field(default_factory=list, max_length=MAX_ROUTE_POINTS)
    grid_size: int = Field(settings.heatmap_grid_size, ge=1, le=100)
    proximity_threshold: float = Field(DEFAULT_PROXIMITY_DEG, gt=0)


def _bounds(ne_lat: float, ne_lon: float, sw_lat: float, sw_lon: float) -> BoundingBox:
    try:
        return BoundingBox(Coordinate(ne_lat, ne_lon), Coordinate(sw_lat, sw_lon)).validate()
    except InvalidBoundingBoxError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _time_filter(hour: Optional[int], day: Optional[int], month: Optional[int]) -> Optional[TimeFilter]:
    given = [v is not None for v in (hour, day, month)]
    if not any(given):
        return None
    if not all(given):
        raise HTTPException(status_code=400, detail="hour, day and month must be given together")
    return TimeFilter(hour=hour, day=day, month=month)


# -----------------------------
# Route exposure
# -----------------------------
@app.post("/api/routes/aqi")
async def api_routes_aqi(
    body: RouteAQIRequest,
    scorer: RouteExposureScorer = Depends(get_scorer),
    redis: Any = Depends(get_redis),
):
    """
    Candidate routes between origin and destination, scored by AQI exposure and sorted
    cleanest first. Falls back to local mock routes when the routing backend is unavailable.
    """
    origin, destination = body.origin.to_coordinate(), body.destination.to_coordinate()

    async def _compute() -> Dict[str, Any]:
        routes = await asyncio.to_thread(scorer.calculate_routes, origin, destination, body.alternatives)
        scored = await scorer.process_batch(routes)
        payload = []
        for r in scored:
            item = r.to_dict()
            item["distance_text"] = format_distance(r.route.total_distance)
            item["duration_text"] = format_duration(r.route.total_duration)
            payload.append(item)
        safest = next((r.id for r in scored if r.is_safest), None)
        return {"routes": payload, "safest_route_id": safest}

    key = key_route_aqi(origin.latitude, origin.longitude, destination.latitude, destination.longitude, body.alternatives)
    return await get_or_compute(redis, key, settings.route_result_cache_ttl, _compute)


# -----------------------------
# Heatmap
# -----------------------------
@app.get("/api/heatmap")
async def api_heatmap(
    ne_lat: float = Query(..., ge=-90, le=90),
    ne_lon: float = Query(..., ge=-180, le=180),
    sw_lat: float = Query(..., ge=-90, le=90),
    sw_lon: float = Query(..., ge=-180, le=180),
    grid_size: int = Query(settings.heatmap_grid_size, ge=1, le=100),
    hour: Optional[int] = Query(None, ge=0, le=23),
    day: Optional[int] = Query(None, ge=0, le=6),
    month: Optional[int] = Query(None, ge=1, le=12),
    hotspot_threshold: float = Query(100),
    generator: HeatmapGenerator = Depends(get_heatmap),
    redis: Any = Depends(get_redis),
):
    """AQI grid over the bounding box, with region average, hotspots and render overlay."""
    bounds = _bounds(ne_lat, ne_lon, sw_lat, sw_lon)
    time_filter = _time_filter(hour, day, month)

    async def _compute() -> Dict[str, Any]:
        grid = await generator.generate_grid(bounds, grid_size, time_filter)
        return {
            "bounds": bounds.to_dict(),
            "points": [p.to_dict() for p in grid],
            "region_average": region_average(grid),
            "hotspots": [p.to_dict() for p in find_hotspots(grid, hotspot_threshold)],
            "overlay": generate_overlay(grid),
        }

    key = key_heatmap(ne_lat, ne_lon, sw_lat, sw_lon, grid_size, time_filter)
    return await get_or_compute(redis, f"{key}:{hotspot_threshold}", settings.heatmap_cache_ttl, _compute)


@app.get("/api/heatmap/forecast")
async def api_heatmap_forecast(
    ne_lat: float = Query(..., ge=-90, le=90),
    ne_lon: float = Query(..., ge=-180, le=180),
    sw_lat: float = Query(..., ge=-90, le=90),
    sw_lon: float = Query(..., ge=-180, le=180),
    hours: int = Query(settings.forecast_hours, ge=1, le=48),
    grid_size: int = Query(settings.forecast_grid_size, ge=1, le=50),
    generator: HeatmapGenerator = Depends(get_heatmap),
):
    """Hourly forecast grids starting now."""
    bounds = _bounds(ne_lat, ne_lon, sw_lat, sw_lon)
    grids = await generator.generate_forecast(bounds, hours, grid_size)
    return {
        "bounds": bounds.to_dict(),
        "grids": [
            {"hour": h, "region_average": region_average(g), "points": [p.to_dict() for p in g]}
            for h, g in enumerate(grids)
        ],
    }


@app.post("/api/heatmap/route_exposure")
async def api_heatmap_route_exposure(
    body: RouteExposureRequest,
    generator: HeatmapGenerator = Depends(get_heatmap),
):
    """Exposure along a route from a heatmap grid built over the route's envelope."""
    points = [p.to_coordinate() for p in body.points]
    if not points:
        return {"exposure": route_exposure_from_grid([], []), "grid_points": 0}
    grid = await generator.generate_grid(BoundingBox.from_points(points), body.grid_size)
    exposure = route_exposure_from_grid(points, grid, body.proximity_threshold)
    return {"exposure": exposure, "grid_points": len(grid)}


@app.get("/api/heatmap/config/{level}")
async def api_heatmap_config(level: str):
    return get_config(level).to_dict()


# -----------------------------
# Point AQI
# -----------------------------
@app.get("/api/aqi")
async def api_aqi(
    lat: float = Query(..., ge=-90, le=90, description="Latitude coordinate"),
    lon: float = Query(..., ge=-180, le=180, description="Longitude coordinate"),
    estimator: Any = Depends(get_estimator),
):
    aqi = await estimator.estimate(Coordinate(lat, lon))
    return {"latitude": lat, "longitude": lon, "aqi": aqi, "category": category_for(aqi), "color": color_for(aqi)}


@app.get("/api/aqi/history")
async def api_aqi_history(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    hours: int = Query(24, ge=1, le=168, description="Hours of history ending now"),
    estimator: Any = Depends(get_estimator),
):
    end = local_now().replace(minute=0, second=0, microsecond=0)
    start = end - timedelta(hours=hours - 1)
    series = await historical_series(estimator, Coordinate(lat, lon), start, end)
    return {
        "latitude": lat,
        "longitude": lon,
        "series": [{"timestamp": s["timestamp"].isoformat(), "aqi": s["aqi"]} for s in series],
    }


# Dev server hint:
# uvicorn api_server:app --reload --host 0.0.0.0 --port 8000
