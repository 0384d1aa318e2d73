"""Castle level synthesis from a fixed fortification template.

Unlike the other biomes the castle does not scatter its anchors freely. The
layout is always:

- an outer curtain wall CASTLE_WALL_THICKNESS tiles thick,
- a solid tower in each inner corner,
- a central keep (wall ring around a hall, one main door on the south side),
- 1-2 cobblestone courtyards and 2-4 furnished interior sections.

Only the contents are randomized. There are no connectors: every open cell
inside the curtain wall is already stone floor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from levelforge import config
from levelforge.environment.level import BiomeType
from levelforge.environment.tile_types import LayerName, TileTypeID
from levelforge.types import WorldTilePos
from levelforge.util.coordinates import Rect

from .base import BiomeSynthesizer
from .context import GenerationContext

logger = logging.getLogger(__name__)

DECORATIONS = (
    TileTypeID.CASTLE_BANNER,
    TileTypeID.CASTLE_STATUE,
    TileTypeID.CASTLE_FOUNTAIN,
    TileTypeID.CASTLE_BENCH,
    TileTypeID.CASTLE_URN,
)
SERVANT_DIALOGUE = (
    "Welcome to the castle, milord.",
    "The lord is not receiving visitors right now.",
    "Please state your business.",
    "The castle has stood for centuries.",
    "Mind your manners in the presence of nobility.",
)

# section type -> (furniture tag, (min count, max count))
SECTION_FURNITURE: dict[str, tuple[TileTypeID, tuple[int, int]]] = {
    "barracks": (TileTypeID.CASTLE_BED, (2, 4)),
    "armory": (TileTypeID.WEAPON_RACK, (1, 2)),
    "dining_hall": (TileTypeID.DINING_TABLE, (1, 2)),
    "library": (TileTypeID.BOOKSHELF, (1, 1)),
    "chapel": (TileTypeID.CHAPEL_ALTAR, (1, 1)),
}
SECTION_TYPES = tuple(SECTION_FURNITURE)


@dataclass
class Section:
    bounds: Rect
    kind: str


@dataclass
class Keep:
    bounds: Rect

    @property
    def hall(self) -> Rect:
        return self.bounds.inner()

    @property
    def door(self) -> WorldTilePos:
        return (self.bounds.x1 + self.bounds.width // 2, self.bounds.y2 - 1)


class CastleSynthesizer(BiomeSynthesizer):
    biome = BiomeType.CASTLE
    rng_domain = "map.castle"

    def __init__(self, ctx: GenerationContext) -> None:
        super().__init__(ctx)
        t = config.CASTLE_WALL_THICKNESS
        self.inner = Rect(t, t, ctx.width - 2 * t, ctx.height - 2 * t)
        self.towers: list[Rect] = []
        self.keep: Keep | None = None
        self.courtyards: list[Rect] = []
        self.sections: list[Section] = []

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def layout(self) -> None:
        inner = self.inner
        if inner.width <= 0 or inner.height <= 0:
            logger.debug("Castle too small for anything inside the curtain wall")
            return

        size = config.CASTLE_TOWER_SIZE
        for x, y in (
            (inner.x1, inner.y1),
            (inner.x2 - size, inner.y1),
            (inner.x1, inner.y2 - size),
            (inner.x2 - size, inner.y2 - size),
        ):
            tower = Rect(x, y, size, size)
            if self._within(tower, inner):
                self.towers.append(tower)

        size = config.CASTLE_KEEP_SIZE
        keep_x = self.ctx.width // 2 - size // 2
        keep_y = self.ctx.height // 2 - size // 2
        keep_rect = Rect(keep_x, keep_y, size, size)
        margin = Rect.from_bounds(
            keep_rect.x1 - 1, keep_rect.y1 - 1, keep_rect.x2 + 1, keep_rect.y2 + 1
        )
        if self._within(margin, inner) and not any(
            margin.intersects(tower) for tower in self.towers
        ):
            self.keep = Keep(keep_rect)

        for _ in range(self.rng.randint(1, 2)):
            courtyard = self.random_rect(
                self.rng.randint(4, 7),
                self.rng.randint(4, 7),
                margin=config.CASTLE_WALL_THICKNESS + 2,
            )
            courtyard = self._clip_to(courtyard, inner)
            if courtyard.area > 0:
                self.courtyards.append(courtyard)

        for _ in range(self.rng.randint(2, 4)):
            self._place_section()

        self.ctx.entry_point = (self.ctx.width // 2, inner.y2 - 1)
        if self.keep is not None:
            self.ctx.exit_point = self.keep.hall.center()
        else:
            self.ctx.exit_point = (self.ctx.width // 2, inner.y1)

    def terrain(self) -> None:
        terrain = self.ctx.layer(LayerName.TERRAIN)
        structures = self.ctx.layer(LayerName.STRUCTURES)
        inner = self.inner

        terrain[:, :] = TileTypeID.CASTLE_STONE
        structures[:, :] = TileTypeID.CASTLE_WALL
        if inner.width > 0 and inner.height > 0:
            structures[inner.x1 : inner.x2, inner.y1 : inner.y2] = TileTypeID.NONE

        # Moss is rolled before anchors are laid so it only survives on bare stone.
        for y in range(self.ctx.height):
            for x in range(self.ctx.width):
                if self.rng.chance(config.CASTLE_MOSS_CHANCE):
                    terrain[x, y] = TileTypeID.CASTLE_STONE_MOSSY

        for courtyard in self.courtyards:
            self._fill(terrain, courtyard, TileTypeID.CASTLE_COBBLESTONE)
        for section in self.sections:
            self._fill(terrain, section.bounds, TileTypeID.CASTLE_FLOOR)

        for tower in self.towers:
            self._fill(structures, tower, TileTypeID.CASTLE_TOWER)

        if self.keep is not None:
            for x, y in self.keep.bounds.perimeter():
                structures[x, y] = TileTypeID.CASTLE_KEEP
            self._fill(terrain, self.keep.hall, TileTypeID.CASTLE_HALL)
            door_x, door_y = self.keep.door
            structures[door_x, door_y] = TileTypeID.NONE
            terrain[door_x, door_y] = TileTypeID.CASTLE_HALL

        blocked = structures != TileTypeID.NONE
        terrain[blocked] = TileTypeID.NONE

    def structures(self) -> None:
        for section in self.sections:
            furniture, (low, high) = SECTION_FURNITURE[section.kind]
            self.scatter(
                LayerName.STRUCTURES,
                (furniture,),
                self.rng.randint(low, high),
                lambda x, y: False,
                section.bounds,
            )

        self.scatter(
            LayerName.STRUCTURES,
            DECORATIONS,
            self.rng.randint(4, 9),
            lambda x, y: not self.is_terrain(x, y, TileTypeID.CASTLE_COBBLESTONE),
        )

    def interactive(self) -> None:
        for tower in self.towers:
            x, y = self._tower_door(tower)
            self.ctx.set_tile(LayerName.INTERACTIVE, x, y, TileTypeID.CASTLE_DOOR)

        if self.keep is not None:
            x, y = self.keep.door
            self.ctx.set_tile(LayerName.INTERACTIVE, x, y, TileTypeID.CASTLE_MAIN_DOOR)
            if self.rng.chance(config.CASTLE_KEEP_TREASURE_CHANCE):
                self.scatter(
                    LayerName.INTERACTIVE,
                    (TileTypeID.TREASURE_CHEST,),
                    1,
                    lambda x, y: False,
                    self.keep.hall,
                )

        for section in self.sections:
            if self.rng.chance(config.CASTLE_SECTION_TREASURE_CHANCE):
                self.scatter(
                    LayerName.INTERACTIVE,
                    (TileTypeID.TREASURE_CHEST,),
                    1,
                    lambda x, y: False,
                    section.bounds,
                )

    def lighting(self) -> None:
        self.scatter(
            LayerName.LIGHTING,
            (TileTypeID.WALL_TORCH,),
            self.rng.randint(6, 13),
            lambda x, y: self.ctx.tile_at(LayerName.STRUCTURES, x, y)
            != TileTypeID.CASTLE_WALL,
        )

        for tower in self.towers:
            x, y = self._tower_door(tower)
            self.ctx.set_tile(LayerName.LIGHTING, x, y, TileTypeID.TOWER_LIGHT)

        for courtyard in self.courtyards:
            self.scatter(
                LayerName.LIGHTING,
                (TileTypeID.COURTYARD_LANTERN,),
                self.rng.randint(1, 3),
                lambda x, y: not self.is_terrain(x, y, TileTypeID.CASTLE_COBBLESTONE),
                courtyard,
            )

        for section in self.sections:
            if self.rng.chance(config.CASTLE_SECTION_LIGHT_CHANCE):
                self.scatter(
                    LayerName.LIGHTING,
                    (TileTypeID.INTERIOR_LIGHT,),
                    1,
                    lambda x, y: False,
                    section.bounds,
                )

    def entities(self) -> None:
        def off_courtyard(x: int, y: int) -> bool:
            return not self.is_terrain(
                x, y, TileTypeID.CASTLE_COBBLESTONE
            ) or not self.ctx.is_free(LayerName.STRUCTURES, x, y)

        for _ in range(self.rng.randint(4, 9)):
            pos = self.place(off_courtyard)
            if pos is not None:
                self.ctx.add_enemy("castle_guard", pos)

        for _ in range(self.rng.randint(2, 5)):
            pos = self.place(off_courtyard)
            if pos is not None:
                self.ctx.add_npc(
                    "castle_servant", pos, self.rng.choice(SERVANT_DIALOGUE)
                )

        if self.keep is not None and (
            self.ctx.config.difficulty == "hard"
            or self.rng.chance(config.CASTLE_BOSS_CHANCE)
        ):
            self.ctx.add_enemy(
                "castle_lord", self.keep.hall.center(), difficulty_level="boss"
            )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _place_section(self) -> None:
        w = self.rng.randint(3, 5)
        h = self.rng.randint(3, 5)
        kind = self.rng.choice(SECTION_TYPES)
        blockers = list(self.towers)
        if self.keep is not None:
            k = self.keep.bounds
            blockers.append(Rect.from_bounds(k.x1 - 1, k.y1 - 1, k.x2 + 1, k.y2 + 1))

        def overlaps(x: int, y: int) -> bool:
            rect = Rect(x, y, w, h)
            return not self._within(rect, self.inner) or any(
                rect.intersects(blocker) for blocker in blockers
            )

        pos = self.place(overlaps, self.inner)
        if pos is not None:
            self.sections.append(Section(Rect(pos[0], pos[1], w, h), kind))

    def _tower_door(self, tower: Rect) -> WorldTilePos:
        return (tower.x1 + tower.width // 2, tower.y2 - 1)

    @staticmethod
    def _within(rect: Rect, outer: Rect) -> bool:
        return (
            rect.x1 >= outer.x1
            and rect.y1 >= outer.y1
            and rect.x2 <= outer.x2
            and rect.y2 <= outer.y2
        )

    @staticmethod
    def _clip_to(rect: Rect, outer: Rect) -> Rect:
        return Rect.from_bounds(
            max(rect.x1, outer.x1),
            max(rect.y1, outer.y1),
            max(max(rect.x1, outer.x1), min(rect.x2, outer.x2)),
            max(max(rect.y1, outer.y1), min(rect.y2, outer.y2)),
        )

    @staticmethod
    def _fill(grid: np.ndarray, rect: Rect, tile: TileTypeID) -> None:
        grid[rect.x1 : rect.x2, rect.y1 : rect.y2] = tile
