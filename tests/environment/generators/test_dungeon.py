"""Tests for the dungeon synthesizer (rooms, corridors, wall inference)."""

from __future__ import annotations

import numpy as np
import pytest

from levelforge.environment.generators.dungeon import DungeonSynthesizer, infer_walls
from levelforge.environment.tile_types import TileTypeID
from levelforge.util.geometry import NEIGHBOR_OFFSETS, connected_components
from tests.helpers import (
    assert_entities_valid,
    assert_no_blocking_overlap,
    make_context,
    synthesize,
)


def test_infer_walls_rings_floor() -> None:
    floor = np.zeros((5, 5), dtype=bool)
    floor[2, 2] = True
    walls = infer_walls(floor)
    assert walls.sum() == 8
    assert not walls[2, 2]
    assert not walls[0, 0]


def test_infer_walls_ignores_out_of_bounds() -> None:
    floor = np.zeros((3, 3), dtype=bool)
    floor[0, 0] = True
    walls = infer_walls(floor)
    assert sorted(map(tuple, np.argwhere(walls).tolist())) == [(0, 1), (1, 0), (1, 1)]


class TestDungeonSynthesizer:
    def test_room_count_and_bounds_for_seed_42(self) -> None:
        ctx = make_context("dungeon", 32, 24, seed=42)
        synth = synthesize(ctx)

        assert isinstance(synth, DungeonSynthesizer)
        assert 5 <= len(synth.rooms) <= 11
        for room in synth.rooms:
            assert room.x1 >= 1 and room.y1 >= 1
            assert room.x2 <= 31 and room.y2 <= 23
        assert len(synth.corridors) == len(synth.rooms) - 1

    def test_entry_and_exit_at_first_and_last_room(self) -> None:
        ctx = make_context("dungeon", seed=42)
        synth = synthesize(ctx)
        assert ctx.entry_point == synth.rooms[0].center()
        assert ctx.exit_point == synth.rooms[-1].center()

    @pytest.mark.parametrize("seed", [1, 42, 1337, 2024])
    def test_floor_is_enclosed_by_walls(self, seed: int) -> None:
        """Every non-floor 8-neighbor of a floor cell carries a wall."""
        ctx = make_context("dungeon", 32, 24, seed=seed)
        synthesize(ctx)
        level = ctx.level
        floor = level.terrain == TileTypeID.DUNGEON_FLOOR

        for x, y in np.argwhere(floor).tolist():
            for dx, dy in NEIGHBOR_OFFSETS:
                nx, ny = x + dx, y + dy
                assert level.in_bounds(nx, ny), "floor touches the level edge"
                if not floor[nx, ny]:
                    assert level.structures[nx, ny] == TileTypeID.DUNGEON_WALL

    @pytest.mark.parametrize("seed", [1, 42, 1337, 2024])
    def test_floor_is_one_connected_area(self, seed: int) -> None:
        ctx = make_context("dungeon", 32, 24, seed=seed)
        synthesize(ctx)
        floor = ctx.level.terrain == TileTypeID.DUNGEON_FLOOR
        assert len(connected_components(floor)) == 1

    @pytest.mark.parametrize("seed", [1, 42, 1337])
    def test_no_blocking_overlap_and_valid_entities(self, seed: int) -> None:
        ctx = make_context("dungeon", seed=seed)
        synthesize(ctx)
        assert_no_blocking_overlap(ctx.level)
        assert_entities_valid(ctx.level)

    def test_tag_vocabulary(self) -> None:
        ctx = make_context("dungeon", seed=42)
        synthesize(ctx)
        level = ctx.level
        assert level.tags_in("terrain") == {"dungeon_floor"}
        assert level.tags_in("structures") == {"dungeon_wall"}
        assert level.tags_in("lighting") <= {"torch"}
        assert level.tags_in("interactive") <= {
            "dungeon_door",
            "treasure_chest",
            "lever",
            "switch",
            "rune",
            "portal",
            "spike_trap",
        }

    def test_each_room_has_a_torch(self) -> None:
        ctx = make_context("dungeon", seed=7)
        synth = synthesize(ctx)
        lighting = ctx.level.lighting
        for room in synth.rooms:
            area = lighting[room.x1 : room.x2, room.y1 : room.y2]
            assert (area == TileTypeID.TORCH).any()

    def test_floor_is_ambient_dark(self) -> None:
        ctx = make_context("dungeon", seed=3)
        synthesize(ctx)
        floor = ctx.level.terrain == TileTypeID.DUNGEON_FLOOR
        assert np.all(ctx.level.effects[floor] == TileTypeID.AMBIENT_DARK)

    def test_enemies_use_config_difficulty(self) -> None:
        ctx = make_context("dungeon", seed=42, difficulty="hard")
        synthesize(ctx)
        enemies = [e for e in ctx.level.entities if e.kind == "enemy"]
        assert all(e.difficulty_level == "hard" for e in enemies)

    def test_traps_only_on_corridors_outside_rooms(self) -> None:
        ctx = make_context("dungeon", seed=5, difficulty="hard")
        synth = synthesize(ctx)
        traps = np.argwhere(ctx.level.interactive == TileTypeID.SPIKE_TRAP).tolist()
        corridor_cells = {cell for corridor in synth.corridors for cell in corridor}
        for x, y in traps:
            assert (x, y) in corridor_cells
            assert not any(room.contains(x, y) for room in synth.rooms)

    def test_tiny_level_does_not_crash(self) -> None:
        ctx = make_context("dungeon", 2, 2, seed=1)
        synth = synthesize(ctx)
        assert synth.rooms == []
        assert ctx.entry_point is None
