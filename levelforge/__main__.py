"""Command-line entry point: generate one level and export it.

Examples:
    python -m levelforge --biome cave --width 40 --height 40 --seed 7 \\
        --output out/cave.json
    python -m levelforge --biome castle --format tmx --output castle.tmx --report
"""

from __future__ import annotations

import argparse
import logging

from levelforge import config
from levelforge.environment.exporter import EXPORT_FORMATS, write_export
from levelforge.environment.generators.pipeline import generate_level
from levelforge.environment.level import BiomeType, LevelConfig
from levelforge.environment.quality import assess_quality
from levelforge.environment.themes import available_themes
from levelforge.errors import ConfigError, ExportFormatError

logger = logging.getLogger("levelforge")

EXIT_OK = 0
EXIT_INTERRUPTED = 1
EXIT_BAD_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="levelforge", description="Generate a procedural tile level"
    )
    parser.add_argument(
        "--biome",
        default=config.DEFAULT_BIOME,
        help=(
            f"Biome type, one of {', '.join(BiomeType)}; "
            "unknown names fall back to dungeon"
        ),
    )
    parser.add_argument(
        "--width",
        type=int,
        default=config.DEFAULT_LEVEL_WIDTH,
        help=f"Level width in tiles (default: {config.DEFAULT_LEVEL_WIDTH})",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=config.DEFAULT_LEVEL_HEIGHT,
        help=f"Level height in tiles (default: {config.DEFAULT_LEVEL_HEIGHT})",
    )
    parser.add_argument(
        "--tile-size",
        type=int,
        default=config.DEFAULT_TILE_SIZE,
        help=f"Tile edge length in pixels (default: {config.DEFAULT_TILE_SIZE})",
    )
    parser.add_argument(
        "--theme",
        default=config.DEFAULT_THEME,
        help=f"Theme name, e.g. {', '.join(available_themes()[:4])}",
    )
    parser.add_argument(
        "--difficulty",
        default=config.DEFAULT_DIFFICULTY,
        help="Difficulty: easy, normal or hard (default: normal)",
    )
    parser.add_argument(
        "--seed", type=int, help="Seed for reproducible output (default: random)"
    )
    parser.add_argument("--name", help="Level name (default: generated)")
    parser.add_argument(
        "--output", "-o", help="Write the export here (default: print nothing)"
    )
    parser.add_argument(
        "--format",
        choices=EXPORT_FORMATS,
        default="json",
        help="Export format (default: json)",
    )
    parser.add_argument(
        "--report", action="store_true", help="Print the quality report as Markdown"
    )
    parser.add_argument(
        "--timeout", type=float, help="Abort generation after this many seconds"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    level_config = LevelConfig(
        width=args.width,
        height=args.height,
        tile_size=args.tile_size,
        biome_type=args.biome,
        theme=args.theme,
        difficulty=args.difficulty,
        seed=args.seed,
        name=args.name,
    )
    try:
        result = generate_level(level_config, timeout=args.timeout)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_BAD_CONFIG

    if not result.ok or result.level is None:
        logger.error(
            f"Generation {result.status} after phases: "
            f"{', '.join(result.completed_phases) or 'none'}"
        )
        return EXIT_INTERRUPTED

    level = result.level
    print(
        f"Generated {level.biome_type} level {level.name!r} "
        f"({level.width}x{level.height}, seed {result.config.seed}, "
        f"{len(level.entities)} entities)"
    )
    if result.validation is not None:
        print(f"Validation: {result.validation.to_dict()}")

    if args.output:
        try:
            path = write_export(level, result.config, args.output, args.format)
        except ExportFormatError as e:
            logger.error(str(e))
            return EXIT_BAD_CONFIG
        print(f"Saved {args.format} export to {path}")

    if args.report:
        print()
        print(assess_quality(level).to_markdown(), end="")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
