"""Level export.

The `tpt_level_v1` JSON document is the durable interchange contract:

    {"level": <Level>, "config": <Config>, "exportDate": <ISO-8601>,
     "format": "tpt_level_v1"}

Its field names and the format tag must not change. A Tiled TMX rendering
is also available for loading a level into a map editor; it carries the
same layers as CSV data with gid = TileTypeID value.
"""

from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

import numpy as np

from levelforge import config
from levelforge.environment.level import Level, LevelConfig
from levelforge.environment.scaffold import Clock, utc_now
from levelforge.environment.tile_types import LAYER_ORDER, TileTypeID
from levelforge.errors import ExportFormatError
from levelforge.types import JsonDict

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "tmx")

TMX_VERSION = "1.10"


def build_export(
    level: Level,
    level_config: LevelConfig | dict[str, Any],
    clock: Clock = utc_now,
) -> JsonDict:
    """Assemble the interchange document for a level and its config."""
    if isinstance(level_config, LevelConfig):
        level_config = level_config.to_dict()
    return {
        "level": level.to_dict(),
        "config": dict(level_config),
        "exportDate": clock().isoformat(),
        "format": config.EXPORT_FORMAT_TAG,
    }


def export_to_file(
    level: Level,
    level_config: LevelConfig | dict[str, Any],
    path: str | Path,
    *,
    clock: Clock = utc_now,
) -> Path:
    """Write the interchange document to path, creating parent directories.

    Returns:
        The path written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    document = build_export(level, level_config, clock)
    with path.open("w", encoding="utf-8") as f:
        json.dump(document, f, indent=config.EXPORT_JSON_INDENT, ensure_ascii=False)
    logger.info(f"Exported level {level.name!r} to {path}")
    return path


def read_export(path: str | Path) -> JsonDict:
    """Load an interchange document.

    Raises:
        ExportFormatError: If the file is not a `tpt_level_v1` document.
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise ExportFormatError(f"{path} is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise ExportFormatError(f"{path} does not contain a level export")
    found = document.get("format")
    if found != config.EXPORT_FORMAT_TAG:
        raise ExportFormatError(
            f"Unsupported export format {found!r} in {path}, "
            f"expected {config.EXPORT_FORMAT_TAG!r}"
        )
    return document


def write_export(
    level: Level,
    level_config: LevelConfig | dict[str, Any],
    path: str | Path,
    fmt: str = "json",
    *,
    clock: Clock = utc_now,
) -> Path:
    """Write level in the named export format ("json" or "tmx").

    Raises:
        ExportFormatError: If fmt is not a supported format name.
    """
    if fmt == "json":
        return export_to_file(level, level_config, path, clock=clock)
    if fmt == "tmx":
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(export_tmx(level), encoding="utf-8")
        logger.info(f"Exported level {level.name!r} to {path} as TMX")
        return path
    raise ExportFormatError(
        f"Unknown export format {fmt!r}, expected one of {EXPORT_FORMATS}"
    )


# =============================================================================
# Tiled TMX
# =============================================================================


def _csv_rows(level: Level, grid: np.ndarray) -> str:
    rows = [
        ",".join(str(v) for v in grid[:, y].tolist()) for y in range(level.height)
    ]
    return "\n" + ",\n".join(rows) + "\n"


def _properties(parent: ET.Element, values: dict[str, object]) -> None:
    props = ET.SubElement(parent, "properties")
    for name, value in values.items():
        ET.SubElement(props, "property", name=name, value=str(value))


def export_tmx(level: Level) -> str:
    """Render the level as a Tiled TMX map (orthogonal, CSV layers).

    Tile gids are TileTypeID values, so gid 0 stays "empty" as in Tiled.
    Entities become point objects positioned in pixels.
    """
    size = level.tile_size
    tile_ids = [t for t in TileTypeID if t is not TileTypeID.NONE]
    object_group_id = len(LAYER_ORDER) + 1

    root = ET.Element(
        "map",
        version=TMX_VERSION,
        orientation="orthogonal",
        renderorder="right-down",
        width=str(level.width),
        height=str(level.height),
        tilewidth=str(size),
        tileheight=str(size),
        infinite="0",
        nextlayerid=str(object_group_id + 1),
        nextobjectid=str(len(level.entities) + 1),
    )
    _properties(
        root,
        {
            "id": level.id,
            "name": level.name,
            "biomeType": level.biome_type.value,
            "theme": level.theme,
            "difficulty": level.difficulty,
            "seed": level.metadata.seed,
        },
    )

    tileset = ET.SubElement(
        root,
        "tileset",
        firstgid="1",
        name=level.metadata.tile_set,
        tilewidth=str(size),
        tileheight=str(size),
        tilecount=str(max(tile_ids)),
        columns="0",
    )
    for tile in tile_ids:
        # Tiled tile ids are gid - firstgid
        element = ET.SubElement(tileset, "tile", id=str(tile.value - 1))
        _properties(element, {"tag": tile.tag})

    for layer_id, layer in enumerate(LAYER_ORDER, start=1):
        element = ET.SubElement(
            root,
            "layer",
            id=str(layer_id),
            name=layer.value,
            width=str(level.width),
            height=str(level.height),
        )
        data = ET.SubElement(element, "data", encoding="csv")
        data.text = _csv_rows(level, level.layers[layer])

    group = ET.SubElement(
        root, "objectgroup", id=str(object_group_id), name="entities"
    )
    for object_id, entity in enumerate(level.entities, start=1):
        obj = ET.SubElement(
            group,
            "object",
            id=str(object_id),
            name=entity.id,
            type=entity.subtype,
            x=str(entity.x * size + size // 2),
            y=str(entity.y * size + size // 2),
        )
        extra = (
            {"difficultyLevel": entity.difficulty_level}
            if entity.difficulty_level is not None
            else {"dialogue": entity.dialogue}
        )
        _properties(obj, {"kind": entity.kind.value, **extra})
        ET.SubElement(obj, "point")

    ET.indent(root, space=" ")
    return ET.tostring(root, encoding="unicode", xml_declaration=True) + "\n"
