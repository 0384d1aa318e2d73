from __future__ import annotations

from collections.abc import Callable
from dataclasses import fields
from datetime import datetime

import numpy as np
import pytest

from levelforge.environment.level import BiomeType, LevelConfig
from levelforge.environment.scaffold import (
    DESCRIPTIONS,
    OBJECTIVES,
    create_scaffold,
)
from levelforge.environment.themes import (
    ThemeProfile,
    available_themes,
    resolve_theme,
)
from levelforge.environment.tile_types import LAYER_ORDER, TileTypeID
from levelforge.errors import ConfigError


class TestCreateScaffold:
    def test_allocates_six_unassigned_layers(self) -> None:
        level = create_scaffold(LevelConfig(width=10, height=7, seed=1))
        assert list(level.layers) == list(LAYER_ORDER)
        for grid in level.layers.values():
            assert grid.shape == (10, 7)
            assert grid.dtype == np.uint8
            assert np.all(grid == TileTypeID.NONE)
        assert level.entities == []

    def test_metadata_draws_from_candidate_lists(self) -> None:
        level = create_scaffold(LevelConfig(seed=5))
        objectives = level.metadata.objectives
        assert 1 <= len(objectives) <= 3
        assert len(set(objectives)) == len(objectives)
        assert set(objectives) <= set(OBJECTIVES)
        assert level.metadata.description in DESCRIPTIONS
        assert level.metadata.seed == 5
        assert level.metadata.version == "1.0"

    def test_reproducible_for_seed(self, fixed_clock: Callable[[], datetime]) -> None:
        first = create_scaffold(LevelConfig(seed=11), clock=fixed_clock)
        second = create_scaffold(LevelConfig(seed=11), clock=fixed_clock)
        assert first.to_dict() == second.to_dict()
        assert first.metadata.generated_at == "2024-01-01T12:00:00+00:00"

    def test_different_seeds_give_different_ids(self) -> None:
        assert (
            create_scaffold(LevelConfig(seed=1)).id
            != create_scaffold(LevelConfig(seed=2)).id
        )

    def test_explicit_name_is_kept(self) -> None:
        level = create_scaffold(LevelConfig(seed=1, name="The Pit"))
        assert level.name == "The Pit"

    def test_biome_is_resolved(self) -> None:
        level = create_scaffold(LevelConfig(seed=1, biome_type="swamp"))
        assert level.biome_type is BiomeType.DUNGEON

    @pytest.mark.parametrize(
        "cfg",
        [
            LevelConfig(width=0),
            LevelConfig(height=0),
            LevelConfig(tile_size=0),
            LevelConfig(width=-1, height=-1),
        ],
    )
    def test_invalid_dimensions_raise_config_error(self, cfg: LevelConfig) -> None:
        with pytest.raises(ConfigError):
            create_scaffold(cfg)

    def test_theme_hints_recorded(self) -> None:
        level = create_scaffold(LevelConfig(seed=1, theme="dark"))
        assert level.metadata.tile_set == "dungeon"
        assert level.metadata.color_palette == "cool"


class TestThemes:
    @pytest.mark.parametrize(
        ("theme", "tile_set", "palette"),
        [
            ("classic", "medieval", "warm"),
            ("dark", "dungeon", "cool"),
            ("bright", "fantasy", "vibrant"),
            ("medieval", "default", "neutral"),
        ],
    )
    def test_presentation(self, theme: str, tile_set: str, palette: str) -> None:
        profile = resolve_theme(theme, "normal")
        assert (profile.tile_set, profile.color_palette) == (tile_set, palette)

    @pytest.mark.parametrize(
        ("difficulty", "density", "traps"),
        [
            ("easy", 0.3, 0.2),
            ("normal", 0.5, 0.4),
            ("hard", 0.7, 0.6),
            ("nightmare", 0.5, 0.4),
        ],
    )
    def test_difficulty_modifiers(
        self, difficulty: str, density: float, traps: float
    ) -> None:
        profile = resolve_theme("classic", difficulty)
        assert profile.enemy_density == density
        assert profile.trap_frequency == traps

    def test_available_themes(self) -> None:
        themes = available_themes()
        assert len(themes) == 10
        assert {"classic", "dark", "bright"} <= set(themes)

    def test_profile_settings_all_reach_the_level(self) -> None:
        """Presentation hints land in metadata; modifiers drive generation."""
        assert {f.name for f in fields(ThemeProfile)} == {
            "theme",
            "difficulty",
            "tile_set",
            "color_palette",
            "enemy_density",
            "trap_frequency",
        }
        profile = resolve_theme("bright", "hard")
        level = create_scaffold(LevelConfig(seed=1, theme="bright", difficulty="hard"))
        assert level.metadata.tile_set == profile.tile_set
        assert level.metadata.color_palette == profile.color_palette
