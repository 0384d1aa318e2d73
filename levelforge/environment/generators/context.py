"""Generation context shared by the phases of one biome synthesizer run.

The GenerationContext is a mutable container that holds the Level being
built plus the per-call services (RNG provider, theme profile). Each phase
receives the same context and modifies the Level in place. This avoids
copying layer arrays between phases.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from levelforge.environment.level import Entity, EntityKind, Level, LevelConfig
from levelforge.environment.themes import ThemeProfile, resolve_theme
from levelforge.environment.tile_types import LayerName, TileTypeID
from levelforge.types import WorldTilePos
from levelforge.util.coordinates import Rect
from levelforge.util.rng import RNGProvider


@dataclass
class GenerationContext:
    """Mutable state container passed through the synthesis phases.

    Attributes:
        config: The configuration this level is generated from.
        level: The Level under construction; layers are mutated in place.
        rng: RNG service for this call. Synthesizers draw named streams from it.
        profile: Resolved theme/difficulty settings.
        entry_point: Tile proposed by the synthesizer for the level entrance.
        exit_point: Tile proposed by the synthesizer for the level exit.
    """

    config: LevelConfig
    level: Level
    rng: RNGProvider
    profile: ThemeProfile
    entry_point: WorldTilePos | None = None
    exit_point: WorldTilePos | None = None
    _next_entity_id: int = field(default=0, repr=False)

    @classmethod
    def create(
        cls, config: LevelConfig, level: Level, rng: RNGProvider
    ) -> GenerationContext:
        return cls(
            config=config,
            level=level,
            rng=rng,
            profile=resolve_theme(config.theme, config.difficulty),
        )

    @property
    def width(self) -> int:
        return self.level.width

    @property
    def height(self) -> int:
        return self.level.height

    @property
    def bounds(self) -> Rect:
        return Rect(0, 0, self.level.width, self.level.height)

    def layer(self, name: LayerName) -> np.ndarray:
        return self.level.layers[name]

    def in_bounds(self, x: int, y: int) -> bool:
        return self.level.in_bounds(x, y)

    def tile_at(self, layer: LayerName, x: int, y: int) -> TileTypeID:
        return self.level.tile_at(layer, x, y)

    def set_tile(self, layer: LayerName, x: int, y: int, tile: TileTypeID) -> None:
        self.level.set_tile(layer, x, y, tile)

    def is_free(self, layer: LayerName, x: int, y: int) -> bool:
        """True when (x, y) is in bounds and unassigned on the given layer."""
        return (
            self.in_bounds(x, y)
            and self.level.layers[layer][x, y] == TileTypeID.NONE
        )

    # -------------------------------------------------------------------------
    # Entities
    # -------------------------------------------------------------------------

    def _allocate_entity_id(self, subtype: str) -> str:
        entity_id = f"{subtype}_{self._next_entity_id:03d}"
        self._next_entity_id += 1
        return entity_id

    def add_enemy(
        self, subtype: str, pos: WorldTilePos, difficulty_level: str | None = None
    ) -> Entity:
        """Append an enemy. Its difficulty level defaults to the config's."""
        entity = Entity(
            id=self._allocate_entity_id(subtype),
            kind=EntityKind.ENEMY,
            subtype=subtype,
            x=pos[0],
            y=pos[1],
            difficulty_level=difficulty_level or self.config.difficulty,
        )
        self.level.entities.append(entity)
        return entity

    def add_npc(self, subtype: str, pos: WorldTilePos, dialogue: str) -> Entity:
        entity = Entity(
            id=self._allocate_entity_id(subtype),
            kind=EntityKind.NPC,
            subtype=subtype,
            x=pos[0],
            y=pos[1],
            dialogue=dialogue,
        )
        self.level.entities.append(entity)
        return entity
