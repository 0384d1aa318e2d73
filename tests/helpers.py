from __future__ import annotations

import numpy as np

from levelforge.environment.generators.base import PHASES, BiomeSynthesizer
from levelforge.environment.generators.context import GenerationContext
from levelforge.environment.generators.registry import create_synthesizer
from levelforge.environment.level import Level, LevelConfig
from levelforge.environment.scaffold import create_scaffold
from levelforge.environment.tile_types import get_blocking_map, get_walkable_terrain_map
from levelforge.util.rng import RNGProvider


def make_context(
    biome: str = "dungeon",
    width: int = 32,
    height: int = 24,
    seed: int = 42,
    **options: str,
) -> GenerationContext:
    """A fresh context holding an empty scaffold for the given biome."""
    level_config = LevelConfig(
        width=width, height=height, biome_type=biome, seed=seed, **options
    )
    rng = RNGProvider(level_config.seed)
    level = create_scaffold(level_config, rng)
    return GenerationContext.create(level_config, level, rng)


def synthesize(ctx: GenerationContext) -> BiomeSynthesizer:
    """Run every synthesis phase (no post-processing) and return the synthesizer."""
    synthesizer = create_synthesizer(ctx)
    for phase in PHASES:
        synthesizer.run_phase(phase)
    return synthesizer


def assert_no_blocking_overlap(level: Level) -> None:
    overlap = get_walkable_terrain_map(level.terrain) & get_blocking_map(
        level.structures
    )
    assert not overlap.any(), f"walkable+blocking at {np.argwhere(overlap)[:5]}"


def assert_entities_valid(level: Level) -> None:
    blocking = get_blocking_map(level.structures)
    for entity in level.entities:
        assert 0 <= entity.x < level.width, entity
        assert 0 <= entity.y < level.height, entity
        assert not blocking[entity.x, entity.y], entity
