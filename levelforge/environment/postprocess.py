"""Post-processing and validation run after every biome synthesizer.

Steps, in order:
1. Stamp the level entrance/exit markers at the synthesizer's proposed
   points, snapped to the nearest free walkable tile.
2. Scatter a biome-specific ambient effect over a small share of walkable
   tiles.
3. Cap the enemy count by the difficulty's enemy density.
4. Validate: start/end markers, treasure, enemies, and connectivity (a tile
   count pre-filter followed by a flood fill from the entrance).

Validation never raises. Problems are reported through ValidationReport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from levelforge import config
from levelforge.environment.level import BiomeType, EntityKind, Level
from levelforge.environment.tile_types import LayerName, TileTypeID
from levelforge.types import JsonDict, WorldTilePos
from levelforge.util.geometry import Placed, flood_fill, try_place

if TYPE_CHECKING:
    from .generators.context import GenerationContext

logger = logging.getLogger(__name__)

AMBIENT_EFFECTS: dict[BiomeType, TileTypeID] = {
    BiomeType.DUNGEON: TileTypeID.DUST_MOTES,
    BiomeType.CAVE: TileTypeID.DRIPPING_WATER,
    BiomeType.FOREST: TileTypeID.FIREFLIES,
    BiomeType.TOWN: TileTypeID.CHIMNEY_SMOKE,
    BiomeType.CASTLE: TileTypeID.DRAFTY_AIR,
}

# Effects a decoration may replace.
_REPLACEABLE_EFFECTS = (TileTypeID.NONE, TileTypeID.AMBIENT_DARK)


@dataclass
class ValidationReport:
    """Advisory outcome of validating a generated level.

    Attributes:
        walkable_tiles: Tiles a character can stand on.
        reachable_tiles: Walkable tiles reachable from the entrance.
    """

    has_start_point: bool = False
    has_end_point: bool = False
    has_treasures: bool = False
    has_enemies: bool = False
    is_connected: bool = False
    walkable_tiles: int = 0
    reachable_tiles: int = 0

    @property
    def is_valid(self) -> bool:
        return all(self.to_dict().values())

    def to_dict(self) -> JsonDict:
        return {
            "hasStartPoint": self.has_start_point,
            "hasEndPoint": self.has_end_point,
            "hasTreasures": self.has_treasures,
            "hasEnemies": self.has_enemies,
            "isConnected": self.is_connected,
        }


def post_process(ctx: GenerationContext) -> ValidationReport:
    """Run every post-processing step on ctx.level and validate the result."""
    place_level_markers(ctx)
    add_decorations(ctx)
    balance_difficulty(ctx)
    report = validate_level(ctx.level)
    logger.info(f"Validation results for {ctx.level.name!r}: {report.to_dict()}")
    return report


# =============================================================================
# Markers
# =============================================================================


def nearest_free_walkable(
    level: Level,
    pos: WorldTilePos | None,
    exclude: WorldTilePos | None = None,
) -> WorldTilePos | None:
    """The walkable tile with a free interactive cell closest to pos.

    Ties go to the tile with the lowest x, then lowest y.
    """
    candidates = level.walkable_map() & (level.interactive == TileTypeID.NONE)
    if exclude is not None and level.in_bounds(*exclude):
        candidates[exclude] = False
    coords = np.argwhere(candidates)
    if len(coords) == 0:
        return None
    if pos is None:
        x, y = coords[0]
        return (int(x), int(y))
    dist = (coords[:, 0] - pos[0]) ** 2 + (coords[:, 1] - pos[1]) ** 2
    x, y = coords[int(np.argmin(dist))]
    return (int(x), int(y))


def place_level_markers(ctx: GenerationContext) -> None:
    level = ctx.level
    entrance = nearest_free_walkable(level, ctx.entry_point)
    if entrance is None:
        logger.warning(f"No walkable tile for the entrance of {level.name!r}")
        return
    level.set_tile(LayerName.INTERACTIVE, *entrance, TileTypeID.LEVEL_ENTRANCE)
    ctx.entry_point = entrance

    exit_ = nearest_free_walkable(level, ctx.exit_point or entrance, exclude=entrance)
    if exit_ is None:
        logger.warning(f"No walkable tile for the exit of {level.name!r}")
        return
    level.set_tile(LayerName.INTERACTIVE, *exit_, TileTypeID.LEVEL_EXIT)
    ctx.exit_point = exit_


# =============================================================================
# Decoration and balancing
# =============================================================================


def add_decorations(ctx: GenerationContext) -> int:
    """Scatter the biome's ambient effect over walkable tiles.

    Returns:
        The number of effect tiles placed.
    """
    level = ctx.level
    rng = ctx.rng.get("postprocess.decor")
    effect = AMBIENT_EFFECTS[level.biome_type]
    walkable = level.walkable_map()
    count = int(np.count_nonzero(walkable) * config.DECORATION_DENSITY)

    def unsuitable(x: int, y: int) -> bool:
        return not walkable[x, y] or level.effects[x, y] not in _REPLACEABLE_EFFECTS

    placed = 0
    for _ in range(count):
        result = try_place(rng, ctx.bounds, unsuitable)
        if isinstance(result, Placed):
            level.set_tile(LayerName.EFFECTS, *result.pos, effect)
            placed += 1
    logger.debug(f"Placed {placed}/{count} {effect.tag} decorations")
    return placed


def balance_difficulty(ctx: GenerationContext) -> int:
    """Trim enemies beyond the difficulty's cap, newest first. Bosses stay.

    Returns:
        The number of enemies removed.
    """
    level = ctx.level
    walkable = int(np.count_nonzero(level.walkable_map()))
    cap = max(
        1, int(walkable * ctx.profile.enemy_density / config.ENEMY_TILES_PER_SLOT)
    )
    enemies = [e for e in level.entities if e.kind is EntityKind.ENEMY]
    excess = len(enemies) - cap
    if excess <= 0:
        return 0

    removed: set[str] = set()
    for entity in reversed(enemies):
        if len(removed) == excess:
            break
        if not entity.is_boss:
            removed.add(entity.id)
    level.entities = [e for e in level.entities if e.id not in removed]
    logger.debug(f"Trimmed {len(removed)} enemies to respect a cap of {cap}")
    return len(removed)


# =============================================================================
# Validation
# =============================================================================


def _find_tile(
    level: Level, layer: LayerName, tile: TileTypeID
) -> WorldTilePos | None:
    coords = np.argwhere(level.layers[layer] == tile)
    if len(coords) == 0:
        return None
    x, y = coords[0]
    return (int(x), int(y))


def check_connectivity(level: Level) -> tuple[bool, int, int]:
    """Check that the walkable area is one connected region.

    A level with too few walkable tiles fails outright. Otherwise a
    4-directional flood fill from the entrance (or the first walkable tile)
    must reach CONNECTIVITY_MIN_REACHABLE_RATIO of all walkable tiles.

    Returns:
        (is_connected, walkable_tiles, reachable_tiles)
    """
    walkable = level.walkable_map()
    walkable_tiles = int(np.count_nonzero(walkable))
    if walkable_tiles <= config.CONNECTIVITY_MIN_WALKABLE:
        return False, walkable_tiles, 0

    start = _find_tile(level, LayerName.INTERACTIVE, TileTypeID.LEVEL_ENTRANCE)
    if start is None or not walkable[start]:
        x, y = np.argwhere(walkable)[0]
        start = (int(x), int(y))

    reachable = len(flood_fill(walkable.copy(order="F"), start, True, False))
    ratio = reachable / walkable_tiles
    return ratio >= config.CONNECTIVITY_MIN_REACHABLE_RATIO, walkable_tiles, reachable


def validate_level(level: Level) -> ValidationReport:
    is_connected, walkable, reachable = check_connectivity(level)

    def has(tile: TileTypeID) -> bool:
        return level.count_tiles(LayerName.INTERACTIVE, tile) > 0

    return ValidationReport(
        has_start_point=has(TileTypeID.LEVEL_ENTRANCE),
        has_end_point=has(TileTypeID.LEVEL_EXIT),
        has_treasures=has(TileTypeID.TREASURE_CHEST),
        has_enemies=any(e.kind is EntityKind.ENEMY for e in level.entities),
        is_connected=is_connected,
        walkable_tiles=walkable,
        reachable_tiles=reachable,
    )
