"""Forest level synthesis: clearings linked by trails under a tree canopy."""

from __future__ import annotations

from levelforge import config
from levelforge.environment.level import BiomeType
from levelforge.environment.tile_types import LayerName, TileTypeID
from levelforge.types import WorldTilePos
from levelforge.util.coordinates import Rect
from levelforge.util.geometry import rasterize_line

from .base import BiomeSynthesizer
from .context import GenerationContext

TREES = (
    TileTypeID.OAK_TREE,
    TileTypeID.PINE_TREE,
    TileTypeID.BIRCH_TREE,
    TileTypeID.WILLOW_TREE,
    TileTypeID.ANCIENT_TREE,
)
VEGETATION = (
    TileTypeID.BUSH,
    TileTypeID.FLOWERS,
    TileTypeID.MUSHROOMS,
    TileTypeID.FERNS,
    TileTypeID.BERRIES,
)
FOREST_STRUCTURES = (
    TileTypeID.RUINS,
    TileTypeID.CAMPSITE,
    TileTypeID.SHRINE,
    TileTypeID.STATUE,
    TileTypeID.WELL,
    TileTypeID.WAGON,
)
ENEMY_TYPES = ("wolf", "bandit", "spider", "bear", "goblin", "boar")
DRUID_DIALOGUE = "The forest has many secrets..."

# Side trails must span more than this many tiles on at least one axis.
_MIN_SIDE_TRAIL_SPAN = 3


def is_long_trail(start: WorldTilePos, end: WorldTilePos) -> bool:
    return (
        abs(start[0] - end[0]) > _MIN_SIDE_TRAIL_SPAN
        or abs(start[1] - end[1]) > _MIN_SIDE_TRAIL_SPAN
    )


class ForestSynthesizer(BiomeSynthesizer):
    biome = BiomeType.FOREST
    rng_domain = "map.forest"

    def __init__(self, ctx: GenerationContext) -> None:
        super().__init__(ctx)
        self.clearings: list[Rect] = []
        self.trails: list[list[WorldTilePos]] = []
        self.side_trails: list[tuple[WorldTilePos, WorldTilePos]] = []

    def layout(self) -> None:
        clip = (self.ctx.width, self.ctx.height)
        for _ in range(self.rng.randint(2, 5)):
            clearing = self.random_rect(
                self.rng.randint(3, 6), self.rng.randint(3, 6), margin=3
            )
            if clearing.area > 0:
                self.clearings.append(clearing)

        for first, second in zip(self.clearings, self.clearings[1:], strict=False):
            self.trails.append(
                rasterize_line(
                    first.center(), second.center(), config.FOREST_TRAIL_WIDTH, clip
                )
            )

        for _ in range(self.rng.randint(1, 3)):
            start = self._random_tile()
            end = self.place(lambda x, y, s=start: not is_long_trail(s, (x, y)))
            if end is None:
                continue
            self.side_trails.append((start, end))
            self.trails.append(
                rasterize_line(start, end, config.FOREST_TRAIL_WIDTH, clip)
            )

        if self.clearings:
            self.ctx.entry_point = self.clearings[0].center()
            self.ctx.exit_point = self.clearings[-1].center()

    def terrain(self) -> None:
        terrain = self.ctx.layer(LayerName.TERRAIN)
        terrain[:, :] = TileTypeID.FOREST_GRASS
        for clearing in self.clearings:
            terrain[clearing.x1 : clearing.x2, clearing.y1 : clearing.y2] = (
                TileTypeID.FOREST_CLEARING
            )
        for trail in self.trails:
            for x, y in trail:
                terrain[x, y] = TileTypeID.FOREST_PATH

    def structures(self) -> None:
        area = self.ctx.width * self.ctx.height

        def in_open_ground(x: int, y: int) -> bool:
            return self._in_clearing(x, y) or self.is_terrain(
                x, y, TileTypeID.FOREST_PATH
            )

        self.scatter(
            LayerName.STRUCTURES,
            TREES,
            int(area * config.FOREST_TREE_COVERAGE),
            in_open_ground,
        )
        self.scatter(
            LayerName.STRUCTURES,
            VEGETATION,
            int(area * config.FOREST_BUSH_COVERAGE),
            in_open_ground,
        )

        for clearing in self.clearings:
            if self.rng.chance(config.FOREST_CLEARING_STRUCTURE_CHANCE):
                self.scatter(
                    LayerName.STRUCTURES,
                    FOREST_STRUCTURES,
                    1,
                    lambda x, y: False,
                    clearing,
                )
        self.scatter(
            LayerName.STRUCTURES,
            FOREST_STRUCTURES,
            self.rng.randint(2, 5),
            self._in_clearing,
        )

    def interactive(self) -> None:
        for clearing in self.clearings:
            if self.rng.chance(config.FOREST_TREASURE_CHANCE):
                self.scatter(
                    LayerName.INTERACTIVE,
                    (TileTypeID.TREASURE_CHEST,),
                    1,
                    lambda x, y: False,
                    clearing,
                )

    def lighting(self) -> None:
        for clearing in self.clearings:
            if self.rng.chance(config.FOREST_CAMPFIRE_CHANCE):
                self.scatter(
                    LayerName.LIGHTING,
                    (TileTypeID.CAMPFIRE,),
                    1,
                    lambda x, y: False,
                    clearing,
                )
        self.scatter(
            LayerName.LIGHTING,
            (TileTypeID.TORCH,),
            self.rng.randint(4, 9),
            lambda x, y: False,
        )

    def entities(self) -> None:
        def unsuitable(x: int, y: int) -> bool:
            return (
                self.is_terrain(x, y, TileTypeID.FOREST_PATH)
                or not self.ctx.is_free(LayerName.STRUCTURES, x, y)
            )

        for _ in range(self.rng.randint(3, 7)):
            pos = self.place(unsuitable)
            if pos is not None:
                self.ctx.add_enemy(self.rng.choice(ENEMY_TYPES), pos)

        if self.rng.chance(config.FOREST_DRUID_CHANCE):
            pos = self.place(
                lambda x, y: not self.is_terrain(x, y, TileTypeID.FOREST_CLEARING)
            )
            if pos is not None:
                self.ctx.add_npc("druid", pos, DRUID_DIALOGUE)

    def _random_tile(self) -> WorldTilePos:
        return (
            self.rng.randrange(self.ctx.width),
            self.rng.randrange(self.ctx.height),
        )

    def _in_clearing(self, x: int, y: int) -> bool:
        return any(clearing.contains(x, y) for clearing in self.clearings)
