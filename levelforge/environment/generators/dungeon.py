"""Dungeon-style level synthesis with rooms and corridors."""

from __future__ import annotations

import numpy as np

from levelforge import config
from levelforge.environment.level import BiomeType
from levelforge.environment.tile_types import LayerName, TileTypeID
from levelforge.types import WorldTilePos
from levelforge.util.coordinates import Rect
from levelforge.util.geometry import rasterize_line

from .base import BiomeSynthesizer
from .context import GenerationContext

ENEMY_TYPES = ("goblin", "skeleton", "orc", "spider", "rat")
NPC_TYPES = ("merchant", "quest_giver", "guard", "prisoner")
NPC_DIALOGUE = (
    "Beware of the traps ahead!",
    "I have information about the treasure... for a price.",
    "The boss is stronger than you think.",
    "Take this key, it might help you.",
    "I was imprisoned here for years...",
)
PUZZLE_ELEMENTS = (
    TileTypeID.LEVER,
    TileTypeID.SWITCH,
    TileTypeID.RUNE,
    TileTypeID.PORTAL,
)


def infer_walls(floor: np.ndarray) -> np.ndarray:
    """Cells that are not floor but touch a floor cell in the 8-neighborhood.

    Args:
        floor: Boolean mask indexed [x, y].

    Returns:
        Boolean mask of the wall ring around every floor area.
    """
    width, height = floor.shape
    padded = np.pad(floor, 1, constant_values=False)
    touched = np.zeros_like(floor)
    for dx in (-1, 0, 1):
        for dy in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            touched |= padded[1 + dx : 1 + dx + width, 1 + dy : 1 + dy + height]
    return touched & ~floor


class DungeonSynthesizer(BiomeSynthesizer):
    """Rooms placed at random, chained by L-shaped corridors.

    Rooms may overlap; overlapping rooms simply merge into a larger open
    area. Every room lies inside the one-tile border of the level, so the
    inferred wall ring always fits on the grid.
    """

    biome = BiomeType.DUNGEON
    rng_domain = "map.dungeon"

    def __init__(self, ctx: GenerationContext) -> None:
        super().__init__(ctx)
        self.rooms: list[Rect] = []
        self.corridors: list[list[WorldTilePos]] = []

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def layout(self) -> None:
        interior_w = self.ctx.width - 2
        interior_h = self.ctx.height - 2
        if interior_w <= 0 or interior_h <= 0:
            return

        room_count = self.rng.randint(
            config.DUNGEON_MIN_ROOMS, config.DUNGEON_MAX_ROOMS
        )
        for _ in range(room_count):
            w = min(self.rng.randint(*config.DUNGEON_ROOM_WIDTH_RANGE), interior_w)
            h = min(self.rng.randint(*config.DUNGEON_ROOM_HEIGHT_RANGE), interior_h)
            x = self.rng.randint(1, 1 + interior_w - w)
            y = self.rng.randint(1, 1 + interior_h - h)
            self.rooms.append(Rect(x, y, w, h))

        interior = Rect(1, 1, interior_w, interior_h)
        for first, second in zip(self.rooms, self.rooms[1:], strict=False):
            corridor_width = self.rng.randint(*config.DUNGEON_CORRIDOR_WIDTH_RANGE)
            corridor = self._carve_corridor(
                first.center(), second.center(), corridor_width, interior
            )
            self.corridors.append(corridor)

        self.ctx.entry_point = self.rooms[0].center()
        self.ctx.exit_point = self.rooms[-1].center()

    def terrain(self) -> None:
        terrain = self.ctx.layer(LayerName.TERRAIN)
        for room in self.rooms:
            terrain[room.x1 : room.x2, room.y1 : room.y2] = TileTypeID.DUNGEON_FLOOR
        for corridor in self.corridors:
            for x, y in corridor:
                terrain[x, y] = TileTypeID.DUNGEON_FLOOR

    def structures(self) -> None:
        floor = self.ctx.layer(LayerName.TERRAIN) == TileTypeID.DUNGEON_FLOOR
        walls = infer_walls(floor)
        self.ctx.layer(LayerName.STRUCTURES)[walls] = TileTypeID.DUNGEON_WALL

    def interactive(self) -> None:
        for room in self.rooms:
            if self.rng.chance(config.DUNGEON_DOOR_CHANCE):
                door_x = room.x1 + room.width // 2
                self.ctx.set_tile(
                    LayerName.INTERACTIVE, door_x, room.y1, TileTypeID.DUNGEON_DOOR
                )

            if self.rng.chance(config.DUNGEON_TREASURE_CHANCE):
                self._place_in_room(room, TileTypeID.TREASURE_CHEST)

            if self.rng.chance(config.DUNGEON_PUZZLE_ELEMENT_CHANCE):
                self._place_in_room(room, self.rng.choice(PUZZLE_ELEMENTS))

        for corridor in self.corridors:
            if not self.rng.chance(self.ctx.profile.trap_frequency):
                continue
            candidates = [
                (x, y)
                for x, y in corridor
                if self.ctx.is_free(LayerName.INTERACTIVE, x, y)
                and not self._in_any_room(x, y)
            ]
            if candidates:
                x, y = self.rng.choice(candidates)
                self.ctx.set_tile(LayerName.INTERACTIVE, x, y, TileTypeID.SPIKE_TRAP)

    def lighting(self) -> None:
        for room in self.rooms:
            for _ in range(self.rng.randint(1, 3)):
                x, y = self._random_room_tile(room)
                self.ctx.set_tile(LayerName.LIGHTING, x, y, TileTypeID.TORCH)

        floor = self.ctx.layer(LayerName.TERRAIN) == TileTypeID.DUNGEON_FLOOR
        self.ctx.layer(LayerName.EFFECTS)[floor] = TileTypeID.AMBIENT_DARK

    def entities(self) -> None:
        for room in self.rooms:
            for _ in range(self.rng.randint(0, config.DUNGEON_MAX_ENEMIES_PER_ROOM)):
                self.ctx.add_enemy(
                    self.rng.choice(ENEMY_TYPES), self._random_room_tile(room)
                )

            if self.rng.chance(config.DUNGEON_NPC_CHANCE):
                self.ctx.add_npc(
                    self.rng.choice(NPC_TYPES),
                    self._random_room_tile(room),
                    self.rng.choice(NPC_DIALOGUE),
                )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _carve_corridor(
        self,
        start: WorldTilePos,
        end: WorldTilePos,
        width: int,
        interior: Rect,
    ) -> list[WorldTilePos]:
        """Horizontal leg along start's row, then vertical leg along end's column."""
        corner = (end[0], start[1])
        cells = rasterize_line(start, corner, width)
        cells += rasterize_line(corner, end, width)
        seen: dict[WorldTilePos, None] = {}
        for x, y in cells:
            if interior.contains(x, y):
                seen[(x, y)] = None
        return list(seen)

    def _random_room_tile(self, room: Rect) -> WorldTilePos:
        """A tile away from the room edge when the room is big enough."""
        area = room.inner() if room.width > 2 and room.height > 2 else room
        return (
            self.rng.randrange(area.x1, area.x2),
            self.rng.randrange(area.y1, area.y2),
        )

    def _place_in_room(self, room: Rect, tile: TileTypeID) -> None:
        area = room.inner() if room.width > 2 and room.height > 2 else room
        pos = self.place(
            lambda x, y: not self.ctx.is_free(LayerName.INTERACTIVE, x, y), area
        )
        if pos is not None:
            self.ctx.set_tile(LayerName.INTERACTIVE, *pos, tile)

    def _in_any_room(self, x: int, y: int) -> bool:
        return any(room.contains(x, y) for room in self.rooms)
