"""Lookup table from biome type to synthesizer class.

Currently implemented:
- dungeon: rooms and corridors
- cave: cellular automata caverns
- forest: clearings and trails
- town: districts, buildings and streets
- castle: fixed fortification template
"""

from __future__ import annotations

from levelforge.environment.level import BiomeType

from .base import BiomeSynthesizer
from .castle import CastleSynthesizer
from .cave import CaveSynthesizer
from .context import GenerationContext
from .dungeon import DungeonSynthesizer
from .forest import ForestSynthesizer
from .town import TownSynthesizer

SYNTHESIZERS: dict[BiomeType, type[BiomeSynthesizer]] = {
    BiomeType.DUNGEON: DungeonSynthesizer,
    BiomeType.CAVE: CaveSynthesizer,
    BiomeType.FOREST: ForestSynthesizer,
    BiomeType.TOWN: TownSynthesizer,
    BiomeType.CASTLE: CastleSynthesizer,
}


def create_synthesizer(ctx: GenerationContext) -> BiomeSynthesizer:
    """Create the synthesizer for the level's biome.

    The level's biome is already resolved, so every value has an entry;
    anything else gets the dungeon pipeline.
    """
    synthesizer_cls = SYNTHESIZERS.get(ctx.level.biome_type, DungeonSynthesizer)
    return synthesizer_cls(ctx)
