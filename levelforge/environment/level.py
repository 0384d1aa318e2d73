"""Level data model: configuration input, entities, and the layered Level.

Layers are stored as NumPy arrays of TileTypeID values with shape
(width, height) indexed [x, y], matching how the generators address tiles.
Serialization flips this into the interchange form: `height` rows of `width`
tag strings (or None), so `rows[y][x]` is the tile at (x, y).
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

import numpy as np

from levelforge import config
from levelforge.environment.tile_types import (
    LAYER_ORDER,
    LayerName,
    TileTypeID,
    get_walkable_map,
)
from levelforge.errors import ConfigError
from levelforge.types import JsonDict, RandomSeed, WorldTilePos

logger = logging.getLogger(__name__)


class BiomeType(StrEnum):
    DUNGEON = "dungeon"
    CAVE = "cave"
    FOREST = "forest"
    TOWN = "town"
    CASTLE = "castle"

    @classmethod
    def resolve(cls, value: str | BiomeType | None) -> BiomeType:
        """Map a requested biome name to a BiomeType.

        Unrecognized names fall back to DUNGEON with a warning; they are
        never an error.
        """
        if value is None:
            return cls(config.DEFAULT_BIOME)
        try:
            return cls(str(value).lower())
        except ValueError:
            logger.warning(f"Unknown biome type {value!r}, falling back to dungeon")
            return cls.DUNGEON


class EntityKind(StrEnum):
    ENEMY = "enemy"
    NPC = "npc"


@dataclass(frozen=True, slots=True)
class Entity:
    """A placed actor. Enemies carry a difficulty level, NPCs carry dialogue."""

    id: str
    kind: EntityKind
    subtype: str
    x: int
    y: int
    difficulty_level: str | None = None
    dialogue: str | None = None

    @property
    def position(self) -> WorldTilePos:
        return (self.x, self.y)

    @property
    def is_boss(self) -> bool:
        return self.difficulty_level == "boss"

    def to_dict(self) -> JsonDict:
        data: JsonDict = {
            "id": self.id,
            "kind": self.kind.value,
            "subtype": self.subtype,
            "position": {"x": self.x, "y": self.y},
        }
        if self.kind is EntityKind.ENEMY:
            data["difficultyLevel"] = self.difficulty_level
        else:
            data["dialogue"] = self.dialogue
        return data


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass(frozen=True)
class LevelConfig:
    """Input options for one generation call.

    Attributes:
        width: Level width in tiles.
        height: Level height in tiles.
        tile_size: Tile edge length in pixels (a rendering hint).
        biome_type: Requested biome name. Unknown names fall back to dungeon.
        theme: Free-form theme name used for presentation hints.
        difficulty: Free-form difficulty name ("easy", "normal", "hard", ...).
        seed: Seed for the RNG service. None draws a fresh seed per call.
        name: Optional level name; generated when omitted.
    """

    width: int = config.DEFAULT_LEVEL_WIDTH
    height: int = config.DEFAULT_LEVEL_HEIGHT
    tile_size: int = config.DEFAULT_TILE_SIZE
    biome_type: str = config.DEFAULT_BIOME
    theme: str = config.DEFAULT_THEME
    difficulty: str = config.DEFAULT_DIFFICULTY
    seed: RandomSeed = None
    name: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LevelConfig:
        """Build a config from the camelCase interchange form.

        `levelType` is accepted as an alias of `biomeType`.
        """
        biome = data.get("biomeType", data.get("levelType", config.DEFAULT_BIOME))
        return cls(
            width=data.get("width", config.DEFAULT_LEVEL_WIDTH),
            height=data.get("height", config.DEFAULT_LEVEL_HEIGHT),
            tile_size=data.get("tileSize", config.DEFAULT_TILE_SIZE),
            biome_type=biome,
            theme=data.get("theme", config.DEFAULT_THEME),
            difficulty=data.get("difficulty", config.DEFAULT_DIFFICULTY),
            seed=data.get("seed"),
            name=data.get("name"),
        )

    def to_dict(self) -> JsonDict:
        data: JsonDict = {
            "width": self.width,
            "height": self.height,
            "tileSize": self.tile_size,
            "biomeType": str(self.biome_type),
            "theme": self.theme,
            "difficulty": self.difficulty,
            "seed": self.seed,
        }
        if self.name is not None:
            data["name"] = self.name
        return data

    @property
    def biome(self) -> BiomeType:
        return BiomeType.resolve(self.biome_type)

    def validate(self) -> None:
        """Raise ConfigError unless width, height and tile size are usable.

        Raises:
            ConfigError: If any dimension is not a positive integer.
        """
        for key, value in (
            ("width", self.width),
            ("height", self.height),
            ("tileSize", self.tile_size),
        ):
            # bool is an int subclass but never a valid dimension
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{key} must be an integer, got {value!r}")
            if value <= 0:
                raise ConfigError(f"{key} must be positive, got {value}")

    def with_resolved_seed(self) -> LevelConfig:
        """Return a config whose seed is fixed, drawing one if it is missing.

        The drawn seed is recorded so a non-deterministic run can be replayed.
        """
        if self.seed is not None:
            return self
        seed = random.SystemRandom().randint(1, config.GENERATED_SEED_LIMIT)
        logger.debug(f"No seed supplied, drew seed {seed}")
        return replace(self, seed=seed)


# =============================================================================
# LEVEL
# =============================================================================


@dataclass
class LevelMetadata:
    generated_at: str
    seed: RandomSeed
    objectives: list[str]
    description: str
    version: str = config.LEVEL_FORMAT_VERSION
    tile_set: str = "default"
    color_palette: str = "neutral"

    def to_dict(self) -> JsonDict:
        return {
            "generatedAt": self.generated_at,
            "version": self.version,
            "seed": self.seed,
            "objectives": list(self.objectives),
            "description": self.description,
            "tileSet": self.tile_set,
            "colorPalette": self.color_palette,
        }


def create_layer(width: int, height: int) -> np.ndarray:
    """Allocate one unassigned layer grid."""
    return np.full(
        (width, height), fill_value=TileTypeID.NONE, dtype=np.uint8, order="F"
    )


@dataclass
class Level:
    """The generated artifact: six layers, an ordered entity list, metadata.

    The engine keeps no reference to a Level after returning it.
    """

    id: str
    name: str
    biome_type: BiomeType
    theme: str
    difficulty: str
    width: int
    height: int
    tile_size: int
    layers: dict[LayerName, np.ndarray]
    metadata: LevelMetadata
    entities: list[Entity] = field(default_factory=list)

    # -------------------------------------------------------------------------
    # Layer access
    # -------------------------------------------------------------------------

    @property
    def terrain(self) -> np.ndarray:
        return self.layers[LayerName.TERRAIN]

    @property
    def structures(self) -> np.ndarray:
        return self.layers[LayerName.STRUCTURES]

    @property
    def interactive(self) -> np.ndarray:
        return self.layers[LayerName.INTERACTIVE]

    @property
    def lighting(self) -> np.ndarray:
        return self.layers[LayerName.LIGHTING]

    @property
    def effects(self) -> np.ndarray:
        return self.layers[LayerName.EFFECTS]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def tile_at(self, layer: LayerName, x: int, y: int) -> TileTypeID:
        return TileTypeID(int(self.layers[layer][x, y]))

    def set_tile(self, layer: LayerName, x: int, y: int, tile: TileTypeID) -> None:
        self.layers[layer][x, y] = tile

    def walkable_map(self) -> np.ndarray:
        return get_walkable_map(self.terrain, self.structures)

    def is_walkable(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and bool(self.walkable_map()[x, y])

    def count_tiles(self, layer: LayerName, tile: TileTypeID) -> int:
        return int(np.count_nonzero(self.layers[layer] == tile))

    def tags_in(self, layer: LayerName) -> set[str]:
        """Distinct tag strings present in a layer."""
        ids = np.unique(self.layers[layer])
        return {TileTypeID(int(i)).tag for i in ids if i != TileTypeID.NONE}

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def serialize_layer(self, layer: LayerName) -> list[list[str | None]]:
        grid = self.layers[layer]
        lookup = {int(t): t.tag for t in TileTypeID}
        return [
            [lookup[int(v)] for v in grid[:, y].tolist()] for y in range(self.height)
        ]

    def to_dict(self) -> JsonDict:
        return {
            "id": self.id,
            "name": self.name,
            "biomeType": self.biome_type.value,
            "theme": self.theme,
            "difficulty": self.difficulty,
            "dimensions": {
                "width": self.width,
                "height": self.height,
                "tileSize": self.tile_size,
            },
            "layers": {
                layer.value: self.serialize_layer(layer) for layer in LAYER_ORDER
            },
            "entities": [entity.to_dict() for entity in self.entities],
            "metadata": self.metadata.to_dict(),
        }
