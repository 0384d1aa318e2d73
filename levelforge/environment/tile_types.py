"""
Tile tag vocabulary for the six level layers.

This module defines:
- `LayerName`: the six named layers every level carries, in draw order.
- `TileTypeID`: one integer ID per tile tag. Layers store NumPy arrays of these
  IDs; `TileTypeID.NONE` (0) marks an unassigned cell. The interchange tag
  string is the lower-cased member name (`TileTypeID.DUNGEON_FLOOR` is
  serialized as "dungeon_floor").
- `TileTypeData`: the intrinsic properties of a tag (owning layer, walkable,
  blocking), registered once per tag in a flyweight table.
- Helper functions that turn ID grids into boolean property maps with a
  single vectorized lookup.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum

import numpy as np


class LayerName(StrEnum):
    BACKGROUND = "background"
    TERRAIN = "terrain"
    STRUCTURES = "structures"
    INTERACTIVE = "interactive"
    LIGHTING = "lighting"
    EFFECTS = "effects"


LAYER_ORDER: tuple[LayerName, ...] = tuple(LayerName)


class TileTypeID(IntEnum):
    NONE = 0

    # --- terrain ---
    DUNGEON_FLOOR = 1
    CAVE_FLOOR = 2
    CAVE_WATER = 3
    FOREST_GRASS = 4
    FOREST_CLEARING = 5
    FOREST_PATH = 6
    TOWN_DIRT = 7
    TOWN_STREET = 8
    TOWN_BUILDING = 9
    CASTLE_STONE = 10
    CASTLE_STONE_MOSSY = 11
    CASTLE_COBBLESTONE = 12
    CASTLE_FLOOR = 13
    CASTLE_HALL = 14

    # --- structures ---
    DUNGEON_WALL = 20
    CAVE_WALL = 21
    STALACTITE = 22
    STALAGMITE = 23
    PILLAR = 24
    FLOWSTONE = 25
    CRYSTAL_CLUSTER = 26
    CAVE_MUSHROOM = 27
    OAK_TREE = 28
    PINE_TREE = 29
    BIRCH_TREE = 30
    WILLOW_TREE = 31
    ANCIENT_TREE = 32
    BUSH = 33
    FLOWERS = 34
    MUSHROOMS = 35
    FERNS = 36
    BERRIES = 37
    RUINS = 38
    CAMPSITE = 39
    SHRINE = 40
    STATUE = 41
    WELL = 42
    WAGON = 43
    TOWN_WINDOW = 44
    TOWN_WELL = 45
    TOWN_STATUE = 46
    TOWN_FOUNTAIN = 47
    TOWN_CART = 48
    TOWN_BENCH = 49
    MARKET_STALL = 50
    CASTLE_WALL = 51
    CASTLE_TOWER = 52
    CASTLE_KEEP = 53
    CASTLE_BED = 54
    WEAPON_RACK = 55
    DINING_TABLE = 56
    BOOKSHELF = 57
    CHAPEL_ALTAR = 58
    CASTLE_BANNER = 59
    CASTLE_STATUE = 60
    CASTLE_FOUNTAIN = 61
    CASTLE_BENCH = 62
    CASTLE_URN = 63

    # --- interactive ---
    DUNGEON_DOOR = 70
    TREASURE_CHEST = 71
    LEVER = 72
    SWITCH = 73
    RUNE = 74
    PORTAL = 75
    SPIKE_TRAP = 76
    TOWN_DOOR = 77
    CASTLE_DOOR = 78
    CASTLE_MAIN_DOOR = 79
    LEVEL_ENTRANCE = 80
    LEVEL_EXIT = 81

    # --- lighting ---
    TORCH = 90
    GLOWING_MUSHROOM = 91
    CRYSTAL_LIGHT = 92
    CAMPFIRE = 93
    STREET_LANTERN = 94
    BUILDING_LIGHT = 95
    CANDLE = 96
    WALL_TORCH = 97
    TOWER_LIGHT = 98
    COURTYARD_LANTERN = 99
    INTERIOR_LIGHT = 100

    # --- effects ---
    AMBIENT_DARK = 110
    DUST_MOTES = 111
    DRIPPING_WATER = 112
    FIREFLIES = 113
    CHIMNEY_SMOKE = 114
    DRAFTY_AIR = 115

    @property
    def tag(self) -> str | None:
        """Interchange tag string, or None for unassigned cells."""
        return None if self is TileTypeID.NONE else self.name.lower()


# Defines the intrinsic data for a tag (flyweight).
TileTypeData = np.dtype(
    [
        ("registered", bool),
        ("walkable", bool),  # terrain a character can stand on
        ("blocking", bool),  # structure that forbids standing on the cell
    ]
)

_MAX_TILE_ID = max(TileTypeID) + 1

_tile_type_data = np.zeros(_MAX_TILE_ID, dtype=TileTypeData)
_tile_type_layer: dict[TileTypeID, LayerName] = {}


def register_tile_type(
    tile_id: TileTypeID,
    layer: LayerName,
    *,
    walkable: bool = False,
    blocking: bool = False,
) -> None:
    """Record the owning layer and properties of a tile tag.

    Raises:
        ValueError: If the tag is already registered.
    """
    if tile_id in _tile_type_layer:
        raise ValueError(f"Tile type {tile_id.name} is already registered.")
    _tile_type_layer[tile_id] = layer
    _tile_type_data[tile_id] = (True, walkable, blocking)


_WALKABLE_TERRAIN = (
    TileTypeID.DUNGEON_FLOOR,
    TileTypeID.CAVE_FLOOR,
    TileTypeID.FOREST_GRASS,
    TileTypeID.FOREST_CLEARING,
    TileTypeID.FOREST_PATH,
    TileTypeID.TOWN_DIRT,
    TileTypeID.TOWN_STREET,
    TileTypeID.CASTLE_STONE,
    TileTypeID.CASTLE_STONE_MOSSY,
    TileTypeID.CASTLE_COBBLESTONE,
    TileTypeID.CASTLE_FLOOR,
    TileTypeID.CASTLE_HALL,
)
_BLOCKING_STRUCTURES = (
    TileTypeID.DUNGEON_WALL,
    TileTypeID.CAVE_WALL,
    TileTypeID.CASTLE_WALL,
    TileTypeID.CASTLE_TOWER,
    TileTypeID.CASTLE_KEEP,
)

for _tile_id in TileTypeID:
    if _tile_id is TileTypeID.NONE:
        continue
    if _tile_id < TileTypeID.DUNGEON_WALL:
        register_tile_type(
            _tile_id, LayerName.TERRAIN, walkable=_tile_id in _WALKABLE_TERRAIN
        )
    elif _tile_id < TileTypeID.DUNGEON_DOOR:
        register_tile_type(
            _tile_id,
            LayerName.STRUCTURES,
            blocking=_tile_id in _BLOCKING_STRUCTURES,
        )
    elif _tile_id < TileTypeID.TORCH:
        register_tile_type(_tile_id, LayerName.INTERACTIVE)
    elif _tile_id < TileTypeID.AMBIENT_DARK:
        register_tile_type(_tile_id, LayerName.LIGHTING)
    else:
        register_tile_type(_tile_id, LayerName.EFFECTS)


WALKABLE_TERRAIN: frozenset[TileTypeID] = frozenset(_WALKABLE_TERRAIN)
BLOCKING_STRUCTURES: frozenset[TileTypeID] = frozenset(_BLOCKING_STRUCTURES)

LAYER_TILES: dict[LayerName, frozenset[TileTypeID]] = {
    layer: frozenset(t for t, owner in _tile_type_layer.items() if owner is layer)
    for layer in LAYER_ORDER
}

_tag_to_id: dict[str, TileTypeID] = {
    t.name.lower(): t for t in TileTypeID if t is not TileTypeID.NONE
}

# --- Pre-calculated Property Arrays for Efficient Lookups ---

_tile_type_properties_walkable = _tile_type_data["walkable"].copy()
_tile_type_properties_blocking = _tile_type_data["blocking"].copy()


# --- Public Helper Functions for Accessing Tile Properties ---


def tile_id_for_tag(tag: str) -> TileTypeID:
    """Look up the TileTypeID of an interchange tag string.

    Raises:
        KeyError: If the tag is unknown.
    """
    return _tag_to_id[tag]


def get_layer_for_tile(tile_id: TileTypeID) -> LayerName:
    return _tile_type_layer[tile_id]


def get_walkable_terrain_map(terrain: np.ndarray) -> np.ndarray:
    """Boolean map, True where the terrain tag is a walkable floor."""
    return _tile_type_properties_walkable[terrain]


def get_blocking_map(structures: np.ndarray) -> np.ndarray:
    """Boolean map, True where the structure tag blocks movement."""
    return _tile_type_properties_blocking[structures]


def get_walkable_map(terrain: np.ndarray, structures: np.ndarray) -> np.ndarray:
    """
    Combines terrain and structures into a boolean map of walkability.
    True means a character can stand on the tile at that position.
    """
    return get_walkable_terrain_map(terrain) & ~get_blocking_map(structures)
