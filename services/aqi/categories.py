"""
EPA AQI breakpoints -> display color and category label.
"""
from typing import List, Tuple

# (upper bound inclusive, color, label); anything above the last bound is Hazardous
AQI_BREAKPOINTS: List[Tuple[int, str, str]] = [
    (50, "#00E400", "Good"),
    (100, "#FFFF00", "Moderate"),
    (150, "#FF7E00", "Unhealthy for Sensitive Groups"),
    (200, "#FF0000", "Unhealthy"),
    (300, "#8F3F97", "Very Unhealthy"),
]
HAZARDOUS_COLOR = "#7E0023"
HAZARDOUS_LABEL = "Hazardous"


def color_for(aqi: float) -> str:
    for upper, color, _ in AQI_BREAKPOINTS:
        if aqi <= upper:
            return color
    return HAZARDOUS_COLOR


def category_for(aqi: float) -> str:
    for upper, _, label in AQI_BREAKPOINTS:
        if aqi <= upper:
            return label
    return HAZARDOUS_LABEL
