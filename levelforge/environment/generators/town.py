"""Town level synthesis: building districts joined by wide streets."""

from __future__ import annotations

from dataclasses import dataclass, field

from levelforge import config
from levelforge.environment.level import BiomeType
from levelforge.environment.tile_types import LayerName, TileTypeID
from levelforge.types import WorldTilePos
from levelforge.util.coordinates import Rect
from levelforge.util.geometry import rasterize_line

from .base import BiomeSynthesizer
from .context import GenerationContext

DISTRICT_TYPES = ("residential", "commercial", "market", "noble")
BUILDING_TYPES = ("house", "shop", "tavern", "inn", "blacksmith", "temple")
TOWN_STRUCTURES = (
    TileTypeID.TOWN_WELL,
    TileTypeID.TOWN_STATUE,
    TileTypeID.TOWN_FOUNTAIN,
    TileTypeID.TOWN_CART,
    TileTypeID.TOWN_BENCH,
)
TOWN_LIGHTS = (
    TileTypeID.STREET_LANTERN,
    TileTypeID.BUILDING_LIGHT,
    TileTypeID.TORCH,
    TileTypeID.CANDLE,
)
GUARD_DIALOGUE = "Stay out of trouble, citizen."
MERCHANT_DIALOGUE = "Welcome to my shop!"
TOWNSFOLK_DIALOGUE = (
    "Beautiful day, isn't it?",
    "Watch your step!",
    "Have you seen the market?",
    "The guards are extra vigilant today.",
    "Welcome to our town!",
)


@dataclass
class Building:
    bounds: Rect
    kind: str


@dataclass
class District:
    bounds: Rect
    kind: str
    buildings: list[Building] = field(default_factory=list)


@dataclass
class Street:
    start: WorldTilePos
    end: WorldTilePos
    cells: list[WorldTilePos]


class TownSynthesizer(BiomeSynthesizer):
    """Districts of small buildings on dirt, joined by streets."""

    biome = BiomeType.TOWN
    rng_domain = "map.town"

    def __init__(self, ctx: GenerationContext) -> None:
        super().__init__(ctx)
        self.districts: list[District] = []
        self.streets: list[Street] = []

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def layout(self) -> None:
        for _ in range(self.rng.randint(2, 4)):
            bounds = self.random_rect(
                self.rng.randint(6, 13), self.rng.randint(5, 10), margin=4
            )
            if bounds.area == 0:
                continue
            district = District(bounds, self.rng.choice(DISTRICT_TYPES))
            for _building in range(self.rng.randint(3, 6)):
                building = self._random_building(bounds)
                if building is not None:
                    district.buildings.append(building)
            self.districts.append(district)

        clip = (self.ctx.width, self.ctx.height)
        for first, second in zip(self.districts, self.districts[1:], strict=False):
            start = first.bounds.center()
            end = second.bounds.center()
            self.streets.append(
                Street(
                    start,
                    end,
                    rasterize_line(start, end, config.TOWN_STREET_WIDTH, clip),
                )
            )

        if self.districts:
            self.ctx.entry_point = self.districts[0].bounds.center()
            self.ctx.exit_point = self.districts[-1].bounds.center()

    def terrain(self) -> None:
        terrain = self.ctx.layer(LayerName.TERRAIN)
        terrain[:, :] = TileTypeID.TOWN_DIRT
        for district in self.districts:
            for building in district.buildings:
                b = building.bounds
                terrain[b.x1 : b.x2, b.y1 : b.y2] = TileTypeID.TOWN_BUILDING
        for street in self.streets:
            for x, y in street.cells:
                terrain[x, y] = TileTypeID.TOWN_STREET

    def structures(self) -> None:
        for district in self.districts:
            for building in district.buildings:
                self.scatter(
                    LayerName.STRUCTURES,
                    (TileTypeID.TOWN_WINDOW,),
                    self.rng.randint(1, 3),
                    lambda x, y: not self.is_terrain(x, y, TileTypeID.TOWN_BUILDING),
                    building.bounds,
                )

        self.scatter(
            LayerName.STRUCTURES,
            TOWN_STRUCTURES,
            self.rng.randint(3, 7),
            lambda x, y: (
                not self.is_terrain(x, y, TileTypeID.TOWN_DIRT)
                or self._in_district(x, y)
            ),
        )

        for district in self.districts:
            if self.rng.chance(config.TOWN_MARKET_STALL_CHANCE):
                self.scatter(
                    LayerName.STRUCTURES,
                    (TileTypeID.MARKET_STALL,),
                    1,
                    lambda x, y: self.is_terrain(x, y, TileTypeID.TOWN_BUILDING),
                    district.bounds,
                )

    def interactive(self) -> None:
        for district in self.districts:
            for building in district.buildings:
                x, y = self._door_position(building.bounds)
                # Streets may have cut through the building.
                if self.is_terrain(x, y, TileTypeID.TOWN_BUILDING):
                    self.ctx.set_tile(
                        LayerName.INTERACTIVE, x, y, TileTypeID.TOWN_DOOR
                    )

        for district in self.districts:
            if self.rng.chance(config.TOWN_TREASURE_CHANCE):
                self.scatter(
                    LayerName.INTERACTIVE,
                    (TileTypeID.TREASURE_CHEST,),
                    1,
                    self._not_open_ground,
                    district.bounds,
                )

    def lighting(self) -> None:
        for street in self.streets:
            count = self.rng.randint(2, 5)
            (sx, sy), (ex, ey) = street.start, street.end
            for i in range(count):
                x = round(sx + (ex - sx) * i / count) + self.rng.randint(-1, 1)
                y = round(sy + (ey - sy) * i / count) + self.rng.randint(-1, 1)
                if self.ctx.in_bounds(x, y):
                    self.ctx.set_tile(
                        LayerName.LIGHTING, x, y, TileTypeID.STREET_LANTERN
                    )

        self.scatter(
            LayerName.LIGHTING,
            TOWN_LIGHTS,
            self.rng.randint(6, 13),
            lambda x, y: False,
        )

    def entities(self) -> None:
        def off_street(x: int, y: int) -> bool:
            return not self.is_terrain(
                x, y, TileTypeID.TOWN_STREET
            ) or not self.ctx.is_free(LayerName.STRUCTURES, x, y)

        for _ in range(self.rng.randint(2, 5)):
            pos = self.place(off_street)
            if pos is not None:
                self.ctx.add_npc("town_guard", pos, GUARD_DIALOGUE)

        for district in self.districts:
            if self.rng.chance(config.TOWN_MERCHANT_CHANCE):
                pos = self.place(self._not_open_ground, district.bounds)
                if pos is not None:
                    self.ctx.add_npc("merchant", pos, MERCHANT_DIALOGUE)

        for _ in range(self.rng.randint(4, 9)):
            pos = self.place(off_street)
            if pos is not None:
                self.ctx.add_npc(
                    "townsfolk", pos, self.rng.choice(TOWNSFOLK_DIALOGUE)
                )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _random_building(self, district: Rect) -> Building | None:
        x = district.x1 + 1 + self.rng.randrange(max(1, district.width - 3))
        y = district.y1 + 1 + self.rng.randrange(max(1, district.height - 3))
        w = self.rng.randint(2, 3)
        h = self.rng.randint(2, 3)
        bounds = Rect(x, y, w, h).clipped(self.ctx.width, self.ctx.height)
        if bounds.area == 0:
            return None
        return Building(bounds, self.rng.choice(BUILDING_TYPES))

    def _door_position(self, bounds: Rect) -> WorldTilePos:
        side = self.rng.randrange(4)
        mid_x = bounds.x1 + bounds.width // 2
        mid_y = bounds.y1 + bounds.height // 2
        match side:
            case 0:
                return (mid_x, bounds.y1)
            case 1:
                return (bounds.x2 - 1, mid_y)
            case 2:
                return (mid_x, bounds.y2 - 1)
            case _:
                return (bounds.x1, mid_y)

    def _in_district(self, x: int, y: int) -> bool:
        return any(d.bounds.contains(x, y) for d in self.districts)

    def _not_open_ground(self, x: int, y: int) -> bool:
        return not self.is_terrain(x, y, TileTypeID.TOWN_DIRT, TileTypeID.TOWN_STREET)
