"""
Google encoded-polyline codec: signed deltas of lat/lng * 1e5, zig-zag, 5-bit groups offset by 63.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from services.geo.coordinates import Coordinate

logger = logging.getLogger(__name__)

PRECISION = 1e5


def _read_value(encoded: str, index: int) -> Tuple[Optional[int], int]:
    """Read one zig-zag varint starting at index. Returns (delta, next_index); delta is None if malformed."""
    result = 0
    shift = 0
    while True:
        if index >= len(encoded):
            return None, index
        b = ord(encoded[index]) - 63
        index += 1
        if b < 0 or b > 0x3F:
            return None, index
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            break
    delta = ~(result >> 1) if result & 1 else result >> 1
    return delta, index


def decode_polyline(encoded: str) -> List[Coordinate]:
    """
    Decode an encoded polyline into coordinates.
    Malformed input (truncated group, character outside '?'..'~', out-of-range coordinate)
    ends decoding; the coordinates decoded so far are returned.
    """
    coords: List[Coordinate] = []
    if not encoded:
        return coords
    index = 0
    lat = 0
    lng = 0
    while index < len(encoded):
        d_lat, index = _read_value(encoded, index)
        if d_lat is None:
            logger.debug("Malformed polyline at offset %s; kept %s points", index, len(coords))
            break
        d_lng, index = _read_value(encoded, index)
        if d_lng is None:
            logger.debug("Malformed polyline at offset %s; kept %s points", index, len(coords))
            break
        lat += d_lat
        lng += d_lng
        point = Coordinate(lat / PRECISION, lng / PRECISION)
        if not point.is_valid:
            logger.debug("Polyline decoded out-of-range point %s; kept %s points", point, len(coords))
            break
        coords.append(point)
    return coords


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chunks = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    chunks.append(chr(value + 63))
    return "".join(chunks)


def encode_polyline(coords: Iterable[Coordinate]) -> str:
    """Encode coordinates as a polyline string (inverse of decode_polyline at 1e-5 degree precision)."""
    out = []
    prev_lat = 0
    prev_lng = 0
    for c in coords:
        lat = int(round(c.latitude * PRECISION))
        lng = int(round(c.longitude * PRECISION))
        out.append(_encode_value(lat - prev_lat))
        out.append(_encode_value(lng - prev_lng))
        prev_lat, prev_lng = lat, lng
    return "".join(out)
