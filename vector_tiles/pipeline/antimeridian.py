"""Antimeridian crossing detection and ring rewrapping."""

from __future__ import annotations

from typing import Any, Sequence

from vector_tiles.common.constants import ANTIMERIDIAN_JUMP_DEGREES

Ring = list[list[float]]


def cross_test(ring: Sequence[Sequence[float]]) -> bool:
    """True when an edge of ``ring`` jumps across the +/-180 line instead of through 0."""
    for current, following in zip(ring, ring[1:]):
        if abs(following[0] - current[0]) > ANTIMERIDIAN_JUMP_DEGREES:
            return True
    return False


def _unwrap(previous: float, lon: float) -> float:
    while lon - previous > ANTIMERIDIAN_JUMP_DEGREES:
        lon -= 360.0
    while previous - lon > ANTIMERIDIAN_JUMP_DEGREES:
        lon += 360.0
    return lon


def warp_array(ring: Sequence[Sequence[float]]) -> Ring:
    """Return a continuous copy of ``ring`` with minority-side longitudes shifted by 360.

    Vertices are unwrapped relative to their predecessor, then the whole ring is
    moved by a multiple of 360 so that most vertices keep their input values.
    Extra ordinates (elevation) are preserved.
    """
    if not ring:
        return []

    unwrapped: Ring = [list(ring[0])]
    for point in ring[1:]:
        shifted = list(point)
        shifted[0] = _unwrap(unwrapped[-1][0], point[0])
        unwrapped.append(shifted)

    # Closing vertex repeats the first one, leave it out of the vote.
    body = unwrapped[:-1] if len(unwrapped) > 1 else unwrapped
    outside = sum(1 for point in body if not -180.0 <= point[0] <= 180.0)
    if outside * 2 > len(body):
        mean_lon = sum(point[0] for point in body) / len(body)
        offset = -360.0 if mean_lon > 0 else 360.0
        for point in unwrapped:
            point[0] += offset

    return unwrapped


def correct_geometry(geometry: dict[str, Any] | None) -> bool:
    """Rewrap the outer ring of a Polygon in place. Holes are left as they are."""
    if not geometry or geometry.get("type") != "Polygon":
        return False
    rings = geometry.get("coordinates") or []
    if not rings or not cross_test(rings[0]):
        return False
    rings[0] = warp_array(rings[0])
    return True
