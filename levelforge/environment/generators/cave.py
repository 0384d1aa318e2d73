"""Cave level synthesis using cellular automata and flood-fill regions.

The cave grid is a boolean wall mask indexed [x, y]:

1. Random noise: each cell is a wall with CAVE_WALL_PROBABILITY.
2. Smoothing: CAVE_SMOOTHING_ITERATIONS passes of the 4-5 rule, counting all
   eight neighbors with out-of-bounds cells counted as walls.
3. Region extraction: open cells are split into 4-connected components and
   classified by size into chambers, tunnels and noise. Noise is filled back
   in as rock so it never receives a tile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from levelforge import config
from levelforge.environment.level import BiomeType
from levelforge.environment.tile_types import LayerName, TileTypeID
from levelforge.types import WorldTilePos
from levelforge.util.geometry import (
    RegionKind,
    bounding_rect,
    classify_region_size,
    connected_components,
)

from .base import BiomeSynthesizer
from .context import GenerationContext

logger = logging.getLogger(__name__)

FORMATIONS = (
    TileTypeID.STALACTITE,
    TileTypeID.STALAGMITE,
    TileTypeID.PILLAR,
    TileTypeID.FLOWSTONE,
)
ENEMY_TYPES = ("cave_spider", "goblin", "bat", "troll", "ooze")
HERMIT_DIALOGUE = "These caves hold many secrets..."


@dataclass
class CaveRegion:
    """A 4-connected blob of open cave cells."""

    kind: RegionKind
    cells: list[WorldTilePos]

    @property
    def size(self) -> int:
        return len(self.cells)


def smooth_walls(walls: np.ndarray) -> np.ndarray:
    """Apply one cellular automata pass to a wall mask."""
    width, height = walls.shape
    padded = np.pad(walls, 1, constant_values=True).astype(np.uint8)
    neighbors = np.zeros((width, height), dtype=np.uint8)
    for dx in (-1, 0, 1):
        for dy in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            neighbors += padded[1 + dx : 1 + dx + width, 1 + dy : 1 + dy + height]
    return np.where(
        walls,
        neighbors >= config.CAVE_WALL_SURVIVAL_LIMIT,
        neighbors >= config.CAVE_WALL_BIRTH_LIMIT,
    )


def classify_regions(open_mask: np.ndarray) -> list[CaveRegion]:
    """Label the open cells of a cave and classify each component by size."""
    return [
        CaveRegion(classify_region_size(len(cells)), cells)
        for cells in connected_components(open_mask)
    ]


class CaveSynthesizer(BiomeSynthesizer):
    """Organic caves with formation-filled chambers."""

    biome = BiomeType.CAVE
    rng_domain = "map.cave"

    def __init__(self, ctx: GenerationContext) -> None:
        super().__init__(ctx)
        self.open = np.zeros((ctx.width, ctx.height), dtype=bool, order="F")
        self.chambers: list[CaveRegion] = []
        self.tunnels: list[CaveRegion] = []

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def layout(self) -> None:
        self.open = self.extract_regions(~self._run_automata())

        main = self._main_region()
        if main is None:
            logger.debug("Cave layout produced no usable open area")
            return
        rect = bounding_rect(main.cells)
        cx, cy = rect.center()
        entry = min(main.cells, key=lambda c: (abs(c[0] - cx) + abs(c[1] - cy), c))
        exit_ = max(
            main.cells, key=lambda c: (abs(c[0] - entry[0]) + abs(c[1] - entry[1]), c)
        )
        self.ctx.entry_point = entry
        self.ctx.exit_point = exit_

    def extract_regions(self, open_mask: np.ndarray) -> np.ndarray:
        """Classify open components, keeping chambers and tunnels only.

        Returns:
            The open mask with noise components filled back in as rock.
        """
        cleaned = np.array(open_mask, dtype=bool, order="F")
        self.chambers = []
        self.tunnels = []
        for region in classify_regions(open_mask):
            if region.kind is RegionKind.CHAMBER:
                self.chambers.append(region)
            elif region.kind is RegionKind.TUNNEL:
                self.tunnels.append(region)
            else:
                for x, y in region.cells:
                    cleaned[x, y] = False
        logger.debug(
            f"Cave regions: {len(self.chambers)} chambers, {len(self.tunnels)} tunnels"
        )
        return cleaned

    def terrain(self) -> None:
        terrain = self.ctx.layer(LayerName.TERRAIN)
        terrain[self.open] = TileTypeID.CAVE_FLOOR
        self.ctx.layer(LayerName.STRUCTURES)[~self.open] = TileTypeID.CAVE_WALL

        for _ in range(self.rng.randint(1, 3)):
            pos = self.place(
                lambda x, y: not self.is_terrain(x, y, TileTypeID.CAVE_FLOOR)
            )
            if pos is not None:
                self.ctx.set_tile(LayerName.TERRAIN, *pos, TileTypeID.CAVE_WATER)

    def structures(self) -> None:
        for chamber in self.chambers:
            members = set(chamber.cells)
            self.scatter(
                LayerName.STRUCTURES,
                FORMATIONS,
                self.rng.randint(3, 7),
                lambda x, y, members=members: (x, y) not in members,
                bounding_rect(chamber.cells),
            )

        self.scatter(
            LayerName.STRUCTURES,
            (TileTypeID.CRYSTAL_CLUSTER,),
            self.rng.randint(5, 12),
            self._is_rock,
        )
        self.scatter(
            LayerName.STRUCTURES,
            (TileTypeID.CAVE_MUSHROOM,),
            self.rng.randint(10, 24),
            self._is_rock,
        )

    def interactive(self) -> None:
        for chamber in self.chambers:
            if not self.rng.chance(config.CAVE_TREASURE_CHANCE):
                continue
            members = set(chamber.cells)
            self.scatter(
                LayerName.INTERACTIVE,
                (TileTypeID.TREASURE_CHEST,),
                1,
                lambda x, y, members=members: (x, y) not in members,
                bounding_rect(chamber.cells),
            )

    def lighting(self) -> None:
        self.scatter(
            LayerName.LIGHTING,
            (TileTypeID.GLOWING_MUSHROOM,),
            self.rng.randint(6, 13),
            self._is_rock,
        )
        self.scatter(
            LayerName.LIGHTING,
            (TileTypeID.CRYSTAL_LIGHT,),
            self.rng.randint(3, 7),
            self._is_rock,
        )

    def entities(self) -> None:
        def off_floor(x: int, y: int) -> bool:
            return not self.is_terrain(x, y, TileTypeID.CAVE_FLOOR)

        for _ in range(self.rng.randint(4, 9)):
            pos = self.place(off_floor)
            if pos is not None:
                self.ctx.add_enemy(self.rng.choice(ENEMY_TYPES), pos)

        if self.rng.chance(config.CAVE_HERMIT_CHANCE):
            pos = self.place(off_floor)
            if pos is not None:
                self.ctx.add_npc("cave_hermit", pos, HERMIT_DIALOGUE)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _run_automata(self) -> np.ndarray:
        width, height = self.ctx.width, self.ctx.height
        walls = np.zeros((width, height), dtype=bool, order="F")
        for y in range(height):
            for x in range(width):
                walls[x, y] = self.rng.random() < config.CAVE_WALL_PROBABILITY

        for _ in range(config.CAVE_SMOOTHING_ITERATIONS):
            walls = smooth_walls(walls)

        # Keep the outer ring solid so every open cell has in-bounds walls.
        walls[0, :] = walls[-1, :] = True
        walls[:, 0] = walls[:, -1] = True
        return walls

    def _main_region(self) -> CaveRegion | None:
        candidates = self.chambers or self.tunnels
        if not candidates:
            return None
        return max(candidates, key=lambda r: r.size)

    def _is_rock(self, x: int, y: int) -> bool:
        return not self.open[x, y]
