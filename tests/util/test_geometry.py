"""Tests for placement, line rasterization and region extraction."""

from __future__ import annotations

import numpy as np
import pytest

from levelforge.util.coordinates import Rect
from levelforge.util.geometry import (
    Exhausted,
    Placed,
    RegionKind,
    bounding_rect,
    classify_region_size,
    connected_components,
    flood_fill,
    rasterize_line,
    try_place,
)
from levelforge.util.rng import RNGProvider, RNGStream


def _stream(seed: int = 1) -> RNGStream:
    return RNGProvider(master_seed=seed).get("test.geometry")


class TestTryPlace:
    """Bounded retry placement."""

    def test_always_excluded_gives_up_after_exactly_20_attempts(self) -> None:
        calls: list[tuple[int, int]] = []

        def excluded(x: int, y: int) -> bool:
            calls.append((x, y))
            return True

        result = try_place(_stream(), Rect(0, 0, 10, 10), excluded)

        assert result == Exhausted(attempts=20)
        assert len(calls) == 20

    def test_respects_max_attempts(self) -> None:
        calls = []
        result = try_place(
            _stream(), Rect(0, 0, 5, 5), lambda x, y: calls.append(1) or True, 3
        )
        assert isinstance(result, Exhausted)
        assert len(calls) == 3

    def test_returns_first_acceptable_tile(self) -> None:
        result = try_place(_stream(), Rect(2, 3, 4, 4), lambda x, y: x < 3)
        assert isinstance(result, Placed)
        x, y = result.pos
        assert 3 <= x < 6
        assert 3 <= y < 7

    def test_samples_inside_bounds(self) -> None:
        bounds = Rect(5, 5, 3, 2)
        seen = []
        try_place(_stream(), bounds, lambda x, y: seen.append((x, y)) or True)
        assert all(bounds.contains(x, y) for x, y in seen)

    def test_empty_bounds_is_exhausted_without_drawing(self) -> None:
        result = try_place(_stream(), Rect(0, 0, 0, 5), lambda x, y: False)
        assert result == Exhausted(attempts=0)

    def test_deterministic_for_seed(self) -> None:
        bounds = Rect(0, 0, 50, 50)
        first = try_place(_stream(9), bounds, lambda x, y: (x + y) % 3 != 0)
        second = try_place(_stream(9), bounds, lambda x, y: (x + y) % 3 != 0)
        assert first == second


class TestRasterizeLine:
    def test_horizontal_line_includes_both_endpoints(self) -> None:
        assert rasterize_line((0, 0), (4, 0)) == [(x, 0) for x in range(5)]

    def test_diagonal_line(self) -> None:
        cells = rasterize_line((0, 0), (3, 3))
        assert cells == [(0, 0), (1, 1), (2, 2), (3, 3)]

    def test_line_is_contiguous(self) -> None:
        cells = rasterize_line((1, 2), (9, 5))
        assert cells[0] == (1, 2)
        assert cells[-1] == (9, 5)
        for (ax, ay), (bx, by) in zip(cells, cells[1:], strict=False):
            assert max(abs(ax - bx), abs(ay - by)) == 1

    def test_wide_line_is_thickened_symmetrically(self) -> None:
        cells = set(rasterize_line((2, 2), (4, 2), width=3))
        expected = {(x, y) for x in range(1, 6) for y in range(1, 4)}
        assert cells == expected

    def test_even_width_uses_half_width_radius(self) -> None:
        cells = rasterize_line((0, 5), (10, 5), width=2)
        assert sorted({y for _, y in cells}) == [4, 5, 6]

    def test_no_duplicate_cells(self) -> None:
        cells = rasterize_line((0, 0), (6, 3), width=3)
        assert len(cells) == len(set(cells))

    def test_clip_drops_out_of_bounds_cells(self) -> None:
        cells = rasterize_line((0, 0), (3, 0), width=3, clip=(3, 2))
        assert all(0 <= x < 3 and 0 <= y < 2 for x, y in cells)
        assert (0, 0) in cells


class TestFloodFill:
    def test_relabels_component_in_place(self) -> None:
        grid = np.zeros((5, 5), dtype=bool, order="F")
        grid[0:2, 0:2] = True
        grid[4, 4] = True

        visited = flood_fill(grid, (0, 0), True, False)

        assert sorted(visited) == [(0, 0), (0, 1), (1, 0), (1, 1)]
        assert not grid[0:2, 0:2].any()
        assert grid[4, 4]

    def test_is_four_directional(self) -> None:
        grid = np.zeros((3, 3), dtype=bool)
        grid[0, 0] = grid[1, 1] = True
        assert len(flood_fill(grid, (0, 0), True, False)) == 1

    def test_start_on_other_value_returns_empty(self) -> None:
        grid = np.zeros((3, 3), dtype=bool)
        assert flood_fill(grid, (1, 1), True, False) == []
        assert flood_fill(grid, (7, 7), True, False) == []

    def test_same_target_and_replacement_rejected(self) -> None:
        with pytest.raises(ValueError):
            flood_fill(np.zeros((2, 2), dtype=bool), (0, 0), False, False)


class TestRegions:
    @pytest.mark.parametrize(
        ("size", "kind"),
        [
            (60, RegionKind.CHAMBER),
            (51, RegionKind.CHAMBER),
            (50, RegionKind.TUNNEL),
            (20, RegionKind.TUNNEL),
            (6, RegionKind.TUNNEL),
            (5, RegionKind.NOISE),
            (3, RegionKind.NOISE),
        ],
    )
    def test_classify_region_size(self, size: int, kind: RegionKind) -> None:
        assert classify_region_size(size) is kind

    def test_connected_components_leaves_mask_untouched(self) -> None:
        mask = np.zeros((6, 6), dtype=bool)
        mask[0, 0:3] = True
        mask[4:6, 4:6] = True
        before = mask.copy()

        components = connected_components(mask)

        assert sorted(len(c) for c in components) == [3, 4]
        assert np.array_equal(mask, before)

    def test_bounding_rect(self) -> None:
        assert bounding_rect([(2, 3), (5, 1), (4, 4)]) == Rect.from_bounds(2, 1, 6, 5)
