"""Theme presentation hints and difficulty modifiers.

A theme only changes what the renderer is told to use (tile set and colour
palette). Difficulty changes generation: enemy density feeds the
post-processor's enemy cap and trap frequency feeds dungeon trap placement.
Unknown names are never an error; they resolve to the defaults.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ThemeProfile:
    """Resolved theme and difficulty settings for one generation call."""

    theme: str
    difficulty: str
    tile_set: str
    color_palette: str
    enemy_density: float
    trap_frequency: float


# theme -> (tile_set, color_palette)
_PRESENTATION: dict[str, tuple[str, str]] = {
    "classic": ("medieval", "warm"),
    "dark": ("dungeon", "cool"),
    "bright": ("fantasy", "vibrant"),
}
_DEFAULT_PRESENTATION = ("default", "neutral")

# difficulty -> (enemy_density, trap_frequency)
_DIFFICULTY_MODIFIERS: dict[str, tuple[float, float]] = {
    "easy": (0.3, 0.2),
    "normal": (0.5, 0.4),
    "hard": (0.7, 0.6),
}

_AVAILABLE_THEMES = (
    "classic",
    "dark",
    "bright",
    "mystical",
    "industrial",
    "natural",
    "ruins",
    "ice",
    "fire",
    "forest",
)


def available_themes() -> tuple[str, ...]:
    return _AVAILABLE_THEMES


def resolve_theme(theme: str, difficulty: str) -> ThemeProfile:
    tile_set, palette = _PRESENTATION.get(theme, _DEFAULT_PRESENTATION)
    enemy_density, trap_frequency = _DIFFICULTY_MODIFIERS.get(
        difficulty, _DIFFICULTY_MODIFIERS["normal"]
    )
    return ThemeProfile(
        theme=theme,
        difficulty=difficulty,
        tile_set=tile_set,
        color_palette=palette,
        enemy_density=enemy_density,
        trap_frequency=trap_frequency,
    )
