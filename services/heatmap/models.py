"""
Heatmap point and rendering config types, with the low/medium/high presets.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict

from config import AQI_MAX
from services.geo.coordinates import Coordinate

DEFAULT_GRADIENT: Dict[float, str] = {
    0.0: "rgba(0, 255, 0, 0)",  # transparent green
    0.2: "rgba(0, 255, 0, 0.8)",  # Good
    0.4: "rgba(255, 255, 0, 0.8)",  # Moderate
    0.6: "rgba(255, 165, 0, 0.8)",  # Unhealthy for Sensitive Groups
    0.8: "rgba(255, 0, 0, 0.8)",  # Unhealthy
    1.0: "rgba(128, 0, 128, 0.8)",  # Very Unhealthy
}


@dataclass(frozen=True)
class HeatmapConfig:
    radius: int = 20
    opacity: float = 0.6
    max_intensity: float = AQI_MAX
    gradient: Dict[float, str] = field(default_factory=lambda: dict(DEFAULT_GRADIENT))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "radius": self.radius,
            "opacity": self.opacity,
            "max_intensity": self.max_intensity,
            "gradient": {str(k): v for k, v in self.gradient.items()},
        }


DEFAULT_CONFIG = HeatmapConfig()

CONFIG_PRESETS: Dict[str, HeatmapConfig] = {
    "low": replace(DEFAULT_CONFIG, opacity=0.4, radius=15, gradient=dict(DEFAULT_GRADIENT)),
    "medium": DEFAULT_CONFIG,
    "high": replace(DEFAULT_CONFIG, opacity=0.8, radius=25, gradient=dict(DEFAULT_GRADIENT)),
}


def get_config(level: str) -> HeatmapConfig:
    """Preset for low/medium/high; unknown levels get the default config."""
    level = (level or "medium").lower().strip()
    return CONFIG_PRESETS.get(level, DEFAULT_CONFIG)


def normalize_intensity(aqi: float, max_intensity: float = AQI_MAX) -> float:
    return min(1.0, aqi / max_intensity)


@dataclass(frozen=True)
class AQIHeatmapPoint:
    coordinate: Coordinate
    aqi: int
    intensity: float
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coordinate": self.coordinate.to_dict(),
            "aqi": self.aqi,
            "intensity": self.intensity,
            "timestamp": self.timestamp.isoformat(),
        }
