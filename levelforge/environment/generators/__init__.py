"""Biome synthesizers for levelforge.

Every biome runs the same six phases (layout, terrain, structures,
interactive, lighting, entities) with its own algorithm:
- DungeonSynthesizer: rooms chained by L-shaped corridors
- CaveSynthesizer: cellular automata plus flood-fill region classification
- ForestSynthesizer: clearings joined by trails
- TownSynthesizer: districts of buildings joined by streets
- CastleSynthesizer: fixed fortification template with random contents

generate_level() is the entry point that selects a synthesizer from the
registry and runs it.
"""

from .base import PHASES, BiomeSynthesizer
from .castle import CastleSynthesizer
from .cave import CaveSynthesizer
from .context import GenerationContext
from .dungeon import DungeonSynthesizer
from .forest import ForestSynthesizer
from .pipeline import (
    CancellationToken,
    GenerationResult,
    GenerationStatus,
    generate_level,
)
from .registry import SYNTHESIZERS, create_synthesizer
from .town import TownSynthesizer

__all__ = [
    "PHASES",
    "SYNTHESIZERS",
    "BiomeSynthesizer",
    "CancellationToken",
    "CastleSynthesizer",
    "CaveSynthesizer",
    "DungeonSynthesizer",
    "ForestSynthesizer",
    "GenerationContext",
    "GenerationResult",
    "GenerationStatus",
    "TownSynthesizer",
    "create_synthesizer",
    "generate_level",
]
