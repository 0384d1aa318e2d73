"""Level scaffold: an empty six-layer Level ready for a biome synthesizer."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TypeAlias

from levelforge.environment.level import (
    Level,
    LevelConfig,
    LevelMetadata,
    create_layer,
)
from levelforge.environment.themes import resolve_theme
from levelforge.environment.tile_types import LAYER_ORDER
from levelforge.util.rng import RNGProvider

logger = logging.getLogger(__name__)

Clock: TypeAlias = Callable[[], datetime]

NAME_PREFIXES = ("Ancient", "Dark", "Forgotten", "Mysterious", "Cursed")
NAME_SUFFIXES = ("Dungeon", "Caverns", "Ruins", "Temple", "Fortress")

OBJECTIVES = (
    "Find the treasure chamber",
    "Defeat the dungeon boss",
    "Rescue the prisoners",
    "Collect ancient artifacts",
    "Escape the collapsing dungeon",
)

DESCRIPTIONS = (
    "A dark and dangerous dungeon filled with traps and treasures.",
    "An ancient underground complex shrouded in mystery.",
    "A labyrinth of stone corridors and hidden chambers.",
    "A forgotten ruin teeming with supernatural forces.",
    "A vast cavern system with untold secrets.",
)


def utc_now() -> datetime:
    return datetime.now(UTC)


def create_scaffold(
    config: LevelConfig,
    rng: RNGProvider | None = None,
    clock: Clock = utc_now,
) -> Level:
    """Allocate an empty Level for config.

    All six layers start unassigned and the entity list starts empty. Name,
    id, objectives and description are drawn from the RNG service, so the
    scaffold is reproducible for a fixed seed.

    Args:
        config: Level configuration. Validated before anything is allocated.
        rng: RNG service for this generation call. A provider seeded from
            config.seed is created when omitted.
        clock: Source of the generatedAt timestamp.

    Raises:
        ConfigError: If width, height or tile size is not a positive integer.
    """
    config.validate()
    if rng is None:
        rng = RNGProvider(config.seed)

    identity_rng = rng.get("level.identity")
    scaffold_rng = rng.get("level.scaffold")

    level_id = str(uuid.UUID(int=identity_rng.getrandbits(128), version=4))
    name = config.name or (
        f"{scaffold_rng.choice(NAME_PREFIXES)} {scaffold_rng.choice(NAME_SUFFIXES)}"
    )
    objective_count = scaffold_rng.randint(1, 3)
    objectives = scaffold_rng.sample(OBJECTIVES, objective_count)
    description = scaffold_rng.choice(DESCRIPTIONS)

    profile = resolve_theme(config.theme, config.difficulty)
    metadata = LevelMetadata(
        generated_at=clock().isoformat(),
        seed=config.seed,
        objectives=objectives,
        description=description,
        tile_set=profile.tile_set,
        color_palette=profile.color_palette,
    )

    level = Level(
        id=level_id,
        name=name,
        biome_type=config.biome,
        theme=config.theme,
        difficulty=config.difficulty,
        width=config.width,
        height=config.height,
        tile_size=config.tile_size,
        layers={
            layer: create_layer(config.width, config.height) for layer in LAYER_ORDER
        },
        metadata=metadata,
    )
    logger.debug(
        f"Created scaffold {level.name!r} ({config.width}x{config.height}, "
        f"biome={level.biome_type})"
    )
    return level
