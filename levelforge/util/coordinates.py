"""Rectangles and bounds checks in tile coordinates."""

from __future__ import annotations

from collections.abc import Iterator

from levelforge.types import TileCoord, WorldTilePos


class Rect:
    """Rectangle/bounding box in tile coordinates.

    (x1, y1) is inclusive, (x2, y2) is exclusive.
    """

    def __init__(self, x: TileCoord, y: TileCoord, w: TileCoord, h: TileCoord) -> None:
        self.x1: TileCoord = x
        self.y1: TileCoord = y
        self.x2: TileCoord = x + w
        self.y2: TileCoord = y + h

    @classmethod
    def from_bounds(
        cls, x1: TileCoord, y1: TileCoord, x2: TileCoord, y2: TileCoord
    ) -> Rect:
        """Create a Rect from corner coordinates (x1, y1, x2, y2)."""
        width = x2 - x1
        height = y2 - y1
        return cls(x1, y1, width, height)

    @property
    def width(self) -> TileCoord:
        return self.x2 - self.x1

    @property
    def height(self) -> TileCoord:
        return self.y2 - self.y1

    @property
    def area(self) -> int:
        return max(0, self.width) * max(0, self.height)

    def center(self) -> WorldTilePos:
        return (self.x1 + self.width // 2, self.y1 + self.height // 2)

    def contains(self, x: TileCoord, y: TileCoord) -> bool:
        return self.x1 <= x < self.x2 and self.y1 <= y < self.y2

    def intersects(self, other: Rect) -> bool:
        """True when the rectangles share at least one tile."""
        return (
            self.x1 < other.x2
            and self.x2 > other.x1
            and self.y1 < other.y2
            and self.y2 > other.y1
        )

    def clipped(self, width: TileCoord, height: TileCoord) -> Rect:
        """Return this rectangle clipped to a width x height grid."""
        return Rect.from_bounds(
            max(0, self.x1),
            max(0, self.y1),
            max(0, min(width, self.x2)),
            max(0, min(height, self.y2)),
        )

    def inner(self) -> Rect:
        """Return the rectangle shrunk by one tile on every side."""
        return Rect.from_bounds(self.x1 + 1, self.y1 + 1, self.x2 - 1, self.y2 - 1)

    def cells(self) -> Iterator[WorldTilePos]:
        """Iterate the tiles covered by this rectangle in row-major order."""
        for y in range(self.y1, self.y2):
            for x in range(self.x1, self.x2):
                yield (x, y)

    def perimeter(self) -> Iterator[WorldTilePos]:
        """Iterate the outermost ring of tiles."""
        for x, y in self.cells():
            if x in (self.x1, self.x2 - 1) or y in (self.y1, self.y2 - 1):
                yield (x, y)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Rect):
            return NotImplemented
        return (self.x1, self.y1, self.x2, self.y2) == (
            other.x1,
            other.y1,
            other.x2,
            other.y2,
        )

    def __hash__(self) -> int:
        return hash((self.x1, self.y1, self.x2, self.y2))

    def __repr__(self) -> str:
        return f"Rect(x1={self.x1}, y1={self.y1}, x2={self.x2}, y2={self.y2})"


# =============================================================================
# BOUNDS CHECKING HELPERS
# =============================================================================


def is_valid_world_tile_pos(
    pos: WorldTilePos, map_width: TileCoord, map_height: TileCoord
) -> bool:
    """Check if world tile position is within map bounds."""
    x, y = pos
    return 0 <= x < map_width and 0 <= y < map_height
