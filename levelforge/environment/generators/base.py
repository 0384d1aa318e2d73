"""Base class for biome synthesizers.

Every biome is a sequential pipeline of six phases:

    layout -> terrain -> structures -> interactive -> lighting -> entities

A synthesizer instance is created per generation call. Transient regions
(rooms, chambers, clearings, districts, ...) live only on that instance and
are discarded with it; the Level only ever receives their effects.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Callable, Iterable
from typing import ClassVar

from levelforge import config
from levelforge.environment.level import BiomeType
from levelforge.environment.tile_types import LayerName, TileTypeID
from levelforge.types import WorldTilePos
from levelforge.util.coordinates import Rect
from levelforge.util.geometry import Exhausted, Placed, try_place
from levelforge.util.rng import RNGStream

from .context import GenerationContext

logger = logging.getLogger(__name__)

PHASES: tuple[str, ...] = (
    "layout",
    "terrain",
    "structures",
    "interactive",
    "lighting",
    "entities",
)


class BiomeSynthesizer(abc.ABC):
    """Abstract base class for the per-biome generation pipelines.

    Subclasses implement one method per phase. The orchestrator calls them in
    PHASES order via run_phase(), checking for cancellation in between.
    """

    biome: ClassVar[BiomeType]
    rng_domain: ClassVar[str]

    def __init__(self, ctx: GenerationContext) -> None:
        self.ctx = ctx
        self.rng: RNGStream = ctx.rng.get(self.rng_domain)

    def run_phase(self, phase: str) -> None:
        if phase not in PHASES:
            raise ValueError(f"Unknown synthesis phase: {phase!r}")
        logger.debug(f"{self.biome} synthesizer: {phase}")
        getattr(self, phase)()

    @abc.abstractmethod
    def layout(self) -> None:
        """Place the transient regions that drive later phases."""

    @abc.abstractmethod
    def terrain(self) -> None:
        """Fill the terrain layer (and any blocking boundary structures)."""

    @abc.abstractmethod
    def structures(self) -> None:
        """Place props and buildings on the structures layer."""

    @abc.abstractmethod
    def interactive(self) -> None:
        """Place doors, chests and other interactive tiles."""

    @abc.abstractmethod
    def lighting(self) -> None:
        """Place light sources on the lighting layer."""

    @abc.abstractmethod
    def entities(self) -> None:
        """Append enemies and NPCs to the level's entity list."""

    # -------------------------------------------------------------------------
    # Shared helpers
    # -------------------------------------------------------------------------

    def place(
        self,
        is_excluded: Callable[[int, int], bool],
        bounds: Rect | None = None,
    ) -> WorldTilePos | None:
        """Bounded retry placement inside bounds (default: the whole level).

        Returns the chosen tile, or None when every attempt was excluded.
        """
        result = try_place(
            self.rng,
            bounds if bounds is not None else self.ctx.bounds,
            is_excluded,
            config.PLACEMENT_MAX_ATTEMPTS,
        )
        match result:
            case Placed(pos):
                return pos
            case Exhausted():
                return None

    def scatter(
        self,
        layer: LayerName,
        choices: Iterable[TileTypeID],
        count: int,
        is_excluded: Callable[[int, int], bool],
        bounds: Rect | None = None,
    ) -> int:
        """Place up to count random tags from choices; returns how many landed.

        Cells already holding a tag on the target layer are always excluded.
        """
        options = tuple(choices)
        placed = 0
        for _ in range(count):
            pos = self.place(
                lambda x, y: not self.ctx.is_free(layer, x, y) or is_excluded(x, y),
                bounds,
            )
            if pos is None:
                continue
            self.ctx.set_tile(layer, *pos, self.rng.choice(options))
            placed += 1
        if placed < count:
            logger.debug(
                f"{self.biome}: placed {placed}/{count} tiles on {layer} layer"
            )
        return placed

    def random_rect(self, w: int, h: int, margin: int = 0) -> Rect:
        """A w x h rectangle at a random spot, kept margin tiles from the edges
        where the level is large enough, and always clipped to the level."""
        max_x = max(margin, self.ctx.width - margin - w)
        max_y = max(margin, self.ctx.height - margin - h)
        x = self.rng.randint(margin, max_x)
        y = self.rng.randint(margin, max_y)
        return Rect(x, y, w, h).clipped(self.ctx.width, self.ctx.height)

    def is_terrain(self, x: int, y: int, *tiles: TileTypeID) -> bool:
        return self.ctx.in_bounds(x, y) and self.ctx.tile_at(
            LayerName.TERRAIN, x, y
        ) in tiles
