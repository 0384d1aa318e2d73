import numpy as np
import pytest

from levelforge.environment import tile_types
from levelforge.environment.tile_types import (
    BLOCKING_STRUCTURES,
    LAYER_ORDER,
    LAYER_TILES,
    LayerName,
    TileTypeID,
)


def test_layer_order() -> None:
    assert [layer.value for layer in LAYER_ORDER] == [
        "background",
        "terrain",
        "structures",
        "interactive",
        "lighting",
        "effects",
    ]


def test_tag_is_lower_case_member_name() -> None:
    assert TileTypeID.DUNGEON_FLOOR.tag == "dungeon_floor"
    assert TileTypeID.CASTLE_MAIN_DOOR.tag == "castle_main_door"
    assert TileTypeID.NONE.tag is None


def test_tile_id_for_tag_round_trips() -> None:
    for tile_id in TileTypeID:
        if tile_id is not TileTypeID.NONE:
            assert tile_types.tile_id_for_tag(tile_id.tag) is tile_id
    with pytest.raises(KeyError):
        tile_types.tile_id_for_tag("lava_moat")


def test_every_tag_belongs_to_exactly_one_layer() -> None:
    tagged = [t for t in TileTypeID if t is not TileTypeID.NONE]
    owners = [layer for t in tagged for layer in LAYER_ORDER if t in LAYER_TILES[layer]]
    assert len(owners) == len(tagged)
    assert LAYER_TILES[LayerName.BACKGROUND] == frozenset()


@pytest.mark.parametrize(
    ("tile_id", "layer"),
    [
        (TileTypeID.CAVE_WATER, LayerName.TERRAIN),
        (TileTypeID.OAK_TREE, LayerName.STRUCTURES),
        (TileTypeID.SPIKE_TRAP, LayerName.INTERACTIVE),
        (TileTypeID.COURTYARD_LANTERN, LayerName.LIGHTING),
        (TileTypeID.DRAFTY_AIR, LayerName.EFFECTS),
    ],
)
def test_get_layer_for_tile(tile_id: TileTypeID, layer: LayerName) -> None:
    assert tile_types.get_layer_for_tile(tile_id) is layer


def test_blocking_set_is_wall_like_tags() -> None:
    assert {t.tag for t in BLOCKING_STRUCTURES} == {
        "dungeon_wall",
        "cave_wall",
        "castle_wall",
        "castle_tower",
        "castle_keep",
    }


def test_register_duplicate_rejected() -> None:
    with pytest.raises(ValueError):
        tile_types.register_tile_type(TileTypeID.TORCH, LayerName.LIGHTING)


def test_tile_type_id_works_as_numpy_index() -> None:
    """IntEnum values work directly with numpy arrays."""
    tiles = np.zeros((3, 3), dtype=np.uint8)
    tiles[1, 1] = TileTypeID.CAVE_FLOOR
    assert tiles[1, 1] == TileTypeID.CAVE_FLOOR


class TestWalkableMap:
    def test_walkable_terrain_without_structure(self) -> None:
        terrain = np.array([[TileTypeID.DUNGEON_FLOOR, TileTypeID.CAVE_WATER]])
        structures = np.zeros_like(terrain)
        assert tile_types.get_walkable_map(terrain, structures).tolist() == [
            [True, False]
        ]

    def test_blocking_structure_overrides_floor(self) -> None:
        terrain = np.array([[TileTypeID.CASTLE_FLOOR, TileTypeID.CASTLE_FLOOR]])
        structures = np.array([[TileTypeID.CASTLE_WALL, TileTypeID.CASTLE_BED]])
        assert tile_types.get_walkable_map(terrain, structures).tolist() == [
            [False, True]
        ]

    def test_unassigned_terrain_is_not_walkable(self) -> None:
        terrain = np.zeros((2, 2), dtype=np.uint8)
        assert not tile_types.get_walkable_terrain_map(terrain).any()

    def test_building_terrain_is_not_walkable(self) -> None:
        terrain = np.array([[TileTypeID.TOWN_BUILDING]], dtype=np.uint8)
        assert not tile_types.get_walkable_terrain_map(terrain).any()
