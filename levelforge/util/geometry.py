"""Shared grid geometry used by every biome synthesizer.

- try_place: bounded retry placement returning Placed(pos) or Exhausted
- rasterize_line: straight connector cells between two tiles (tcod Bresenham)
- flood_fill / connected_components: 4-directional region extraction
- classify_region_size: chamber / tunnel / noise classification for caves

All functions are pure apart from flood_fill, which relabels the grid it is
given. Randomness always comes from the caller's RNG stream.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, TypeAlias

import numpy as np
import tcod.los

from levelforge import config
from levelforge.types import WorldTilePos
from levelforge.util.coordinates import Rect

if TYPE_CHECKING:
    from levelforge.util.rng import RNG

logger = logging.getLogger(__name__)

CARDINAL_OFFSETS: tuple[WorldTilePos, ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))

NEIGHBOR_OFFSETS: tuple[WorldTilePos, ...] = (
    (-1, -1),
    (0, -1),
    (1, -1),
    (-1, 0),
    (1, 0),
    (-1, 1),
    (0, 1),
    (1, 1),
)


# =============================================================================
# Bounded retry placement
# =============================================================================


@dataclass(frozen=True, slots=True)
class Placed:
    """A placement attempt succeeded at pos."""

    pos: WorldTilePos


@dataclass(frozen=True, slots=True)
class Exhausted:
    """Every placement attempt hit the exclusion predicate."""

    attempts: int


PlacementResult: TypeAlias = Placed | Exhausted


def try_place(
    rng: RNG,
    bounds: Rect,
    is_excluded: Callable[[int, int], bool],
    max_attempts: int = config.PLACEMENT_MAX_ATTEMPTS,
) -> PlacementResult:
    """Draw random tiles inside bounds until one is not excluded.

    This is best-effort: after max_attempts draws the caller gets Exhausted
    and is expected to skip the feature.

    Args:
        rng: Random stream to draw coordinates from.
        bounds: Area to sample; x2/y2 are exclusive.
        is_excluded: Predicate returning True for tiles that cannot be used.
        max_attempts: Number of draws before giving up.

    Returns:
        Placed with the first acceptable tile, or Exhausted.
    """
    if bounds.width <= 0 or bounds.height <= 0:
        return Exhausted(attempts=0)

    for _ in range(max_attempts):
        x = rng.randrange(bounds.x1, bounds.x2)
        y = rng.randrange(bounds.y1, bounds.y2)
        if not is_excluded(x, y):
            return Placed((x, y))

    logger.debug(f"Placement exhausted after {max_attempts} attempts in {bounds}")
    return Exhausted(attempts=max_attempts)


# =============================================================================
# Line rasterization
# =============================================================================


def rasterize_line(
    start: WorldTilePos,
    end: WorldTilePos,
    width: int = 1,
    clip: tuple[int, int] | None = None,
) -> list[WorldTilePos]:
    """Return the tiles of a straight path from start to end (both inclusive).

    For width > 1 every centerline tile is expanded into a square brush of
    radius width // 2, so the stroke grows symmetrically on both sides.

    Args:
        start: First endpoint.
        end: Second endpoint.
        width: Stroke width in tiles.
        clip: Optional (width, height) of the grid; tiles outside are dropped.

    Returns:
        Tiles in path order without duplicates.
    """
    centerline = [
        (int(x), int(y)) for x, y in tcod.los.bresenham(start, end).tolist()
    ]
    radius = width // 2 if width > 1 else 0

    cells: dict[WorldTilePos, None] = {}
    for cx, cy in centerline:
        for dy in range(-radius, radius + 1):
            for dx in range(-radius, radius + 1):
                cells[(cx + dx, cy + dy)] = None

    if clip is not None:
        grid_w, grid_h = clip
        return [(x, y) for x, y in cells if 0 <= x < grid_w and 0 <= y < grid_h]
    return list(cells)


# =============================================================================
# Flood fill / region extraction
# =============================================================================


class RegionKind(Enum):
    """Classification of an open cave component by size."""

    CHAMBER = "chamber"
    TUNNEL = "tunnel"
    NOISE = "noise"


def classify_region_size(size: int) -> RegionKind:
    """Classify a connected component by its tile count."""
    if size > config.CAVE_CHAMBER_MIN_SIZE:
        return RegionKind.CHAMBER
    if size > config.CAVE_TUNNEL_MIN_SIZE:
        return RegionKind.TUNNEL
    return RegionKind.NOISE


def flood_fill(
    grid: np.ndarray,
    start: WorldTilePos,
    target: object,
    replacement: object,
) -> list[WorldTilePos]:
    """Relabel the 4-connected component of target values containing start.

    The grid is indexed [x, y] and modified in place: every visited cell is
    set to replacement.

    Returns:
        The visited tiles; len() of the result is the component size.
    """
    if target == replacement:
        raise ValueError("flood_fill target and replacement must differ")

    width, height = grid.shape
    sx, sy = start
    if not (0 <= sx < width and 0 <= sy < height) or grid[sx, sy] != target:
        return []

    grid[sx, sy] = replacement
    queue = deque([start])
    visited: list[WorldTilePos] = []
    while queue:
        cx, cy = queue.popleft()
        visited.append((cx, cy))
        for dx, dy in CARDINAL_OFFSETS:
            nx, ny = cx + dx, cy + dy
            if 0 <= nx < width and 0 <= ny < height and grid[nx, ny] == target:
                grid[nx, ny] = replacement
                queue.append((nx, ny))
    return visited


def connected_components(mask: np.ndarray) -> list[list[WorldTilePos]]:
    """Split the True cells of a boolean mask into 4-connected components.

    Components are discovered in row-major order (top row first), which keeps
    the result stable for a given mask. The input mask is not modified.
    """
    work = np.array(mask, dtype=bool, order="F")
    width, height = work.shape
    components: list[list[WorldTilePos]] = []
    for y in range(height):
        for x in range(width):
            if work[x, y]:
                components.append(flood_fill(work, (x, y), True, False))
    return components


def bounding_rect(cells: list[WorldTilePos]) -> Rect:
    """Smallest Rect covering all cells."""
    xs = [x for x, _ in cells]
    ys = [y for _, y in cells]
    return Rect.from_bounds(min(xs), min(ys), max(xs) + 1, max(ys) + 1)
