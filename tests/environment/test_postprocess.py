from __future__ import annotations

import numpy as np
import pytest

from levelforge.environment.generators.context import GenerationContext
from levelforge.environment.postprocess import (
    AMBIENT_EFFECTS,
    ValidationReport,
    add_decorations,
    balance_difficulty,
    check_connectivity,
    nearest_free_walkable,
    place_level_markers,
    post_process,
    validate_level,
)
from levelforge.environment.tile_types import LayerName, TileTypeID
from tests.helpers import make_context


def floor_context(
    width: int = 10, height: int = 10, biome: str = "dungeon", **options: str
) -> GenerationContext:
    """A context whose level is open dungeon floor everywhere."""
    ctx = make_context(biome, width=width, height=height, **options)
    ctx.level.terrain[:] = TileTypeID.DUNGEON_FLOOR
    return ctx


class TestNearestFreeWalkable:
    def test_returns_pos_when_free(self) -> None:
        ctx = floor_context(5, 5)
        assert nearest_free_walkable(ctx.level, (2, 2)) == (2, 2)

    def test_skips_occupied_interactive_cell(self) -> None:
        ctx = floor_context(5, 5)
        ctx.set_tile(LayerName.INTERACTIVE, 2, 2, TileTypeID.TREASURE_CHEST)
        # Four tiles tie at distance 1; the lowest x wins.
        assert nearest_free_walkable(ctx.level, (2, 2)) == (1, 2)

    def test_skips_blocked_tiles(self) -> None:
        ctx = floor_context(5, 5)
        ctx.level.structures[:3, :] = TileTypeID.DUNGEON_WALL
        assert nearest_free_walkable(ctx.level, (0, 0)) == (3, 0)

    def test_exclude(self) -> None:
        ctx = floor_context(5, 5)
        assert nearest_free_walkable(ctx.level, (0, 0), exclude=(0, 0)) == (0, 1)

    def test_no_position_takes_first_candidate(self) -> None:
        ctx = floor_context(5, 5)
        assert nearest_free_walkable(ctx.level, None) == (0, 0)

    def test_no_walkable_tiles(self) -> None:
        ctx = make_context(width=5, height=5)
        assert nearest_free_walkable(ctx.level, (2, 2)) is None


class TestLevelMarkers:
    def test_entrance_and_exit_are_distinct(self) -> None:
        ctx = floor_context()
        ctx.entry_point = (1, 1)
        ctx.exit_point = (8, 8)

        place_level_markers(ctx)

        assert ctx.tile_at(LayerName.INTERACTIVE, 1, 1) is TileTypeID.LEVEL_ENTRANCE
        assert ctx.tile_at(LayerName.INTERACTIVE, 8, 8) is TileTypeID.LEVEL_EXIT

    def test_same_proposal_still_yields_two_markers(self) -> None:
        ctx = floor_context()
        ctx.entry_point = (4, 4)
        ctx.exit_point = (4, 4)

        place_level_markers(ctx)

        assert ctx.entry_point != ctx.exit_point
        assert ctx.level.count_tiles(LayerName.INTERACTIVE, TileTypeID.LEVEL_EXIT) == 1

    def test_markers_snap_off_walls(self) -> None:
        ctx = floor_context()
        ctx.level.structures[0, :] = TileTypeID.DUNGEON_WALL
        ctx.entry_point = (0, 5)

        place_level_markers(ctx)

        assert ctx.entry_point == (1, 5)

    def test_missing_proposals_fall_back(self) -> None:
        ctx = floor_context()
        place_level_markers(ctx)
        assert ctx.entry_point is not None
        assert ctx.exit_point is not None
        assert ctx.entry_point != ctx.exit_point

    def test_no_walkable_tiles_places_nothing(self) -> None:
        ctx = make_context(width=5, height=5)
        ctx.entry_point = (2, 2)
        place_level_markers(ctx)
        assert not ctx.level.interactive.any()


class TestDecorations:
    @pytest.mark.parametrize("biome", ["dungeon", "cave", "forest", "town", "castle"])
    def test_effect_matches_biome(self, biome: str) -> None:
        ctx = floor_context(20, 20, biome)
        placed = add_decorations(ctx)

        effect = AMBIENT_EFFECTS[ctx.level.biome_type]
        assert 0 < placed <= 4
        assert ctx.level.count_tiles(LayerName.EFFECTS, effect) == placed

    def test_decorations_only_on_walkable_tiles(self) -> None:
        ctx = floor_context(20, 20)
        ctx.level.terrain[:10, :] = TileTypeID.NONE
        ctx.level.structures[:10, :] = TileTypeID.DUNGEON_WALL

        add_decorations(ctx)

        decorated = np.argwhere(ctx.level.effects == TileTypeID.DUST_MOTES)
        assert len(decorated) > 0
        assert (decorated[:, 0] >= 10).all()

    def test_replaces_ambient_dark_only(self) -> None:
        ctx = floor_context(20, 20)
        ctx.level.effects[:] = TileTypeID.AMBIENT_DARK
        ctx.level.effects[0, 0] = TileTypeID.DRAFTY_AIR

        add_decorations(ctx)

        assert ctx.tile_at(LayerName.EFFECTS, 0, 0) is TileTypeID.DRAFTY_AIR

    def test_tiny_level_gets_no_decorations(self) -> None:
        ctx = floor_context(5, 5)
        assert add_decorations(ctx) == 0


class TestBalanceDifficulty:
    def test_trims_newest_enemies_and_keeps_boss(self) -> None:
        # 100 walkable tiles at normal difficulty allow 6 enemies.
        ctx = floor_context()
        for i in range(9):
            ctx.add_enemy("goblin", (i, 0))
        boss = ctx.add_enemy("dragon", (9, 9), difficulty_level="boss")
        npc = ctx.add_npc("merchant", (5, 5), "Hello")

        removed = balance_difficulty(ctx)

        ids = [e.id for e in ctx.level.entities]
        assert removed == 4
        assert boss.id in ids
        assert npc.id in ids
        assert ids[:5] == [f"goblin_{i:03d}" for i in range(5)]

    def test_under_cap_is_untouched(self) -> None:
        ctx = floor_context()
        ctx.add_enemy("goblin", (1, 1))
        assert balance_difficulty(ctx) == 0
        assert len(ctx.level.entities) == 1

    def test_at_least_one_enemy_is_allowed(self) -> None:
        ctx = floor_context(2, 2)
        ctx.add_enemy("goblin", (0, 0))
        ctx.add_enemy("goblin", (1, 1))
        assert balance_difficulty(ctx) == 1

    def test_easy_difficulty_allows_fewer(self) -> None:
        easy = floor_context(difficulty="easy")
        hard = floor_context(difficulty="hard")
        for ctx in (easy, hard):
            for i in range(10):
                ctx.add_enemy("goblin", (i, 0))
            balance_difficulty(ctx)
        assert len(easy.level.entities) < len(hard.level.entities)


class TestConnectivity:
    def test_few_walkable_tiles_fail_outright(self) -> None:
        ctx = make_context(width=10, height=10)
        ctx.level.terrain[:5, :2] = TileTypeID.DUNGEON_FLOOR
        assert check_connectivity(ctx.level) == (False, 10, 0)

    def test_just_above_threshold_passes(self) -> None:
        ctx = make_context(width=11, height=1)
        ctx.level.terrain[:] = TileTypeID.DUNGEON_FLOOR
        assert check_connectivity(ctx.level) == (True, 11, 11)

    def test_split_level_is_disconnected(self) -> None:
        ctx = floor_context(20, 20)
        ctx.level.terrain[10, :] = TileTypeID.NONE
        ctx.set_tile(LayerName.INTERACTIVE, 0, 0, TileTypeID.LEVEL_ENTRANCE)

        connected, walkable, reachable = check_connectivity(ctx.level)

        assert not connected
        assert walkable == 380
        assert reachable == 200

    def test_small_pocket_is_tolerated(self) -> None:
        ctx = floor_context(20, 20)
        ctx.level.structures[17, 17:] = TileTypeID.DUNGEON_WALL
        ctx.level.structures[17:, 17] = TileTypeID.DUNGEON_WALL
        connected, _, _ = check_connectivity(ctx.level)
        assert connected


class TestValidation:
    def test_complete_level_is_valid(self) -> None:
        ctx = floor_context()
        ctx.entry_point = (0, 0)
        ctx.exit_point = (9, 9)
        ctx.set_tile(LayerName.INTERACTIVE, 5, 5, TileTypeID.TREASURE_CHEST)
        ctx.add_enemy("goblin", (3, 3))

        report = post_process(ctx)

        assert report.is_valid
        assert report.walkable_tiles == 100
        assert report.reachable_tiles == 100

    def test_empty_level_reports_everything_missing(self) -> None:
        ctx = make_context(width=5, height=5)
        report = validate_level(ctx.level)
        assert report.to_dict() == {
            "hasStartPoint": False,
            "hasEndPoint": False,
            "hasTreasures": False,
            "hasEnemies": False,
            "isConnected": False,
        }
        assert not report.is_valid

    def test_npcs_do_not_count_as_enemies(self) -> None:
        ctx = floor_context()
        ctx.add_npc("guard", (1, 1), "Halt!")
        assert not validate_level(ctx.level).has_enemies

    def test_report_has_exactly_five_keys(self) -> None:
        assert len(ValidationReport().to_dict()) == 5
