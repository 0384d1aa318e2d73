"""Quality assessment of a finished level.

Where ValidationReport answers "is this level playable at all", the quality
report grades it: it gathers metrics over the walkable area, the entity
list and the lighting layer, turns out-of-range metrics into issues
(critical/major/minor) or warnings, and folds them into a 0-100 score and
an overall status.

Nothing here modifies the level.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum

import numpy as np

from levelforge import config
from levelforge.environment.level import BiomeType, Level
from levelforge.environment.tile_types import LayerName, TileTypeID
from levelforge.types import JsonDict
from levelforge.util.geometry import connected_components

# Harder biomes weigh the same entity count more heavily.
BIOME_DIFFICULTY_MULTIPLIERS: dict[BiomeType, float] = {
    BiomeType.DUNGEON: 1.5,
    BiomeType.CAVE: 1.3,
    BiomeType.FOREST: 0.9,
    BiomeType.TOWN: 0.7,
    BiomeType.CASTLE: 1.0,
}


class Severity(StrEnum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class QualityStatus(StrEnum):
    INVALID = "invalid"
    NEEDS_FIXES = "needs_fixes"
    NEEDS_IMPROVEMENTS = "needs_improvements"
    VALID = "valid"


@dataclass(frozen=True)
class Finding:
    """One issue or warning raised by an assessment check."""

    category: str
    severity: Severity
    message: str

    def to_dict(self) -> JsonDict:
        return {
            "type": self.category,
            "severity": self.severity.value,
            "message": self.message,
        }


@dataclass
class QualityReport:
    status: QualityStatus = QualityStatus.VALID
    score: int = 100
    issues: list[Finding] = field(default_factory=list)
    warnings: list[Finding] = field(default_factory=list)
    metrics: dict[str, object] = field(default_factory=dict)

    def issue(self, category: str, severity: Severity, message: str) -> None:
        self.issues.append(Finding(category, severity, message))

    def warn(self, category: str, message: str) -> None:
        self.warnings.append(Finding(category, Severity.MINOR, message))

    def to_dict(self) -> JsonDict:
        return {
            "overall": self.status.value,
            "score": self.score,
            "issues": [issue.to_dict() for issue in self.issues],
            "warnings": [warning.to_dict() for warning in self.warnings],
            "metrics": dict(self.metrics),
        }

    def to_markdown(self) -> str:
        lines = [
            "# Level Quality Report",
            "",
            f"**Overall Status:** {self.status.value.upper()}",
            f"**Score:** {self.score}/100",
            "",
        ]
        for title, findings in (("Issues", self.issues), ("Warnings", self.warnings)):
            if not findings:
                continue
            lines.append(f"## {title} ({len(findings)})")
            for i, finding in enumerate(findings, start=1):
                lines.append(
                    f"{i}. **{finding.severity.value.upper()}**: {finding.message}"
                )
            lines.append("")

        lines.append("## Metrics")
        for key, value in self.metrics.items():
            if isinstance(value, float):
                lines.append(f"- **{key}:** {value:.2f}")
            elif isinstance(value, dict):
                items = ", ".join(f"{k}: {v}" for k, v in value.items())
                lines.append(f"- **{key}:** {{{items}}}")
            else:
                lines.append(f"- **{key}:** {value}")
        return "\n".join(lines) + "\n"


def assess_quality(level: Level) -> QualityReport:
    """Grade a generated level.

    Returns:
        A QualityReport with metrics, findings, score and status.
    """
    report = QualityReport()
    _check_structure(level, report)
    _check_connectivity(level, report)
    _check_balance(level, report)
    _check_accessibility(level, report)
    _check_lighting(level, report)
    report.score = calculate_score(report.issues, report.warnings)
    report.status = determine_status(report.issues, report.warnings)
    return report


def calculate_score(issues: list[Finding], warnings: list[Finding]) -> int:
    score = 100
    for issue in issues:
        score -= config.QUALITY_SEVERITY_PENALTIES[issue.severity.value]
    score -= config.QUALITY_WARNING_PENALTY * len(warnings)
    return max(0, min(100, score))


def determine_status(
    issues: list[Finding], warnings: list[Finding]
) -> QualityStatus:
    severities = {issue.severity for issue in issues}
    if Severity.CRITICAL in severities:
        return QualityStatus.INVALID
    if Severity.MAJOR in severities:
        return QualityStatus.NEEDS_FIXES
    if len(warnings) > config.QUALITY_MAX_WARNINGS_FOR_VALID:
        return QualityStatus.NEEDS_IMPROVEMENTS
    return QualityStatus.VALID


def cardinal_neighbor_counts(mask: np.ndarray) -> np.ndarray:
    """Number of True 4-neighbors of every cell. Out of bounds counts as False."""
    padded = np.pad(mask.astype(np.uint8), 1)
    return (
        padded[:-2, 1:-1] + padded[2:, 1:-1] + padded[1:-1, :-2] + padded[1:-1, 2:]
    )


# =============================================================================
# Checks
# =============================================================================


def _check_structure(level: Level, report: QualityReport) -> None:
    limit = config.QUALITY_MAX_DIMENSION
    if level.width > limit or level.height > limit:
        report.issue(
            "structure",
            Severity.CRITICAL,
            f"Invalid dimensions: {level.width}x{level.height} "
            f"(maximum {limit}x{limit})",
        )
    if not level.terrain.any():
        report.issue("structure", Severity.MAJOR, "Terrain layer is empty")


def _check_connectivity(level: Level, report: QualityReport) -> None:
    walkable = level.walkable_map()
    walkable_tiles = int(np.count_nonzero(walkable))
    percentage = walkable_tiles / (level.width * level.height)
    report.metrics["walkablePercentage"] = percentage

    minimum = config.QUALITY_MIN_WALKABLE_PERCENTAGE
    if percentage < minimum:
        report.issue(
            "connectivity",
            Severity.MAJOR,
            f"Walkable area too small: {round(percentage * 100)}% "
            f"(minimum {round(minimum * 100)}%)",
        )

    sizes = [len(c) for c in connected_components(walkable)]
    isolated = sum(1 for s in sizes if s < config.QUALITY_ISOLATED_AREA_SIZE)
    report.metrics["isolatedAreas"] = isolated
    if isolated > config.QUALITY_MAX_ISOLATED_AREAS:
        report.warn(
            "connectivity",
            f"Too many isolated areas: {isolated} "
            f"(maximum {config.QUALITY_MAX_ISOLATED_AREAS})",
        )

    main_ratio = max(sizes) / walkable_tiles if sizes else 0.0
    report.metrics["mainAreaConnectivity"] = main_ratio
    if main_ratio < config.QUALITY_MIN_MAIN_AREA_RATIO:
        report.warn(
            "connectivity",
            f"Main area connectivity low: {round(main_ratio * 100)}%",
        )


def _check_balance(level: Level, report: QualityReport) -> None:
    entity_count = len(level.entities)
    report.metrics["entityCount"] = entity_count
    report.metrics["entityKindDistribution"] = dict(
        Counter(entity.kind.value for entity in level.entities)
    )
    report.metrics["entitySubtypeDistribution"] = dict(
        Counter(entity.subtype for entity in level.entities)
    )

    if entity_count < config.QUALITY_MIN_ENTITIES:
        report.warn(
            "balance",
            f"Low entity count: {entity_count} "
            f"(minimum {config.QUALITY_MIN_ENTITIES})",
        )
    if entity_count > config.QUALITY_MAX_ENTITIES:
        report.issue(
            "balance",
            Severity.MAJOR,
            f"Too many entities: {entity_count} "
            f"(maximum {config.QUALITY_MAX_ENTITIES})",
        )

    area = level.width * level.height
    treasures = level.count_tiles(LayerName.INTERACTIVE, TileTypeID.TREASURE_CHEST)
    per_1000 = treasures * 1000 / area
    report.metrics["treasureDensity"] = per_1000
    if per_1000 < config.QUALITY_MIN_TREASURE_PER_1000_TILES:
        report.warn(
            "balance", f"Low treasure density: {per_1000:.1f} per 1000 tiles"
        )

    score = entity_count * 0.1 + math.sqrt(area) * 0.05
    score *= BIOME_DIFFICULTY_MULTIPLIERS.get(level.biome_type, 1.0)
    report.metrics["difficultyScore"] = score
    if score > config.QUALITY_MAX_DIFFICULTY_SCORE:
        report.warn("balance", f"High difficulty score: {score:.1f}")


def _check_accessibility(level: Level, report: QualityReport) -> None:
    entrances = level.count_tiles(LayerName.INTERACTIVE, TileTypeID.LEVEL_ENTRANCE)
    exits = level.count_tiles(LayerName.INTERACTIVE, TileTypeID.LEVEL_EXIT)
    report.metrics["entranceCount"] = entrances
    if entrances < 1:
        report.issue("accessibility", Severity.MAJOR, "Level has no entrance")
    if exits < 1:
        report.issue("accessibility", Severity.MAJOR, "Level has no exit")

    walkable = level.walkable_map()
    neighbors = cardinal_neighbor_counts(walkable)
    dead_ends = int(np.count_nonzero(walkable & (neighbors == 1)))
    junctions = int(np.count_nonzero(walkable & (neighbors >= 3)))
    report.metrics["deadEndCount"] = dead_ends
    report.metrics["junctionCount"] = junctions

    if dead_ends > config.QUALITY_MAX_DEAD_ENDS:
        report.warn(
            "accessibility",
            f"Too many dead ends: {dead_ends} "
            f"(maximum {config.QUALITY_MAX_DEAD_ENDS})",
        )
    if junctions < config.QUALITY_MIN_JUNCTIONS:
        report.warn(
            "accessibility",
            f"Few alternative paths: {junctions} "
            f"(minimum {config.QUALITY_MIN_JUNCTIONS})",
        )


def _check_lighting(level: Level, report: QualityReport) -> None:
    lighting = level.lighting
    lights = int(np.count_nonzero(lighting != TileTypeID.NONE))
    report.metrics["lightSourceCount"] = lights

    area = level.width * level.height
    lit = lights * math.pi * config.QUALITY_LIGHT_RADIUS**2
    coverage = min(1.0, lit / area)
    report.metrics["lightCoverage"] = coverage
    if coverage < config.QUALITY_MIN_LIGHT_COVERAGE:
        report.warn(
            "lighting",
            f"Low light coverage: {round(coverage * 100)}% "
            f"(minimum {round(config.QUALITY_MIN_LIGHT_COVERAGE * 100)}%)",
        )
