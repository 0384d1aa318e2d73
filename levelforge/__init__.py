"""Procedural level generation for tile-based games.

Typical usage:
    from levelforge import LevelConfig, generate_level

    result = generate_level(LevelConfig(width=32, height=24, seed=42))
    level = result.level
    print(result.validation.to_dict())
"""

from levelforge.environment.exporter import export_tmx, export_to_file, read_export
from levelforge.environment.generators.pipeline import (
    CancellationToken,
    GenerationResult,
    GenerationStatus,
    generate_level,
)
from levelforge.environment.level import (
    BiomeType,
    Entity,
    EntityKind,
    Level,
    LevelConfig,
)
from levelforge.environment.postprocess import ValidationReport
from levelforge.environment.quality import QualityReport, assess_quality
from levelforge.environment.scaffold import create_scaffold
from levelforge.errors import ConfigError, ExportFormatError, LevelForgeError

__all__ = [
    "BiomeType",
    "CancellationToken",
    "ConfigError",
    "Entity",
    "EntityKind",
    "ExportFormatError",
    "GenerationResult",
    "GenerationStatus",
    "Level",
    "LevelConfig",
    "LevelForgeError",
    "QualityReport",
    "ValidationReport",
    "assess_quality",
    "create_scaffold",
    "export_tmx",
    "export_to_file",
    "generate_level",
    "read_export",
]
