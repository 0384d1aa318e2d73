from __future__ import annotations

from typing import TypeAlias

# =============================================================================
# TILE-BASED COORDINATE SYSTEMS (Always integers)
# =============================================================================

TileCoord: TypeAlias = int  # Always integer tile position

# Level coordinates - absolute positions on a level's tile grid
WorldTilePos: TypeAlias = tuple[int, int]  # Example: (5, 3) = tile 5,3 on the level

# =============================================================================
# GENERATION TYPES
# =============================================================================

# Random seed for deterministic generation.
# Can be an int for numeric seeds or a descriptive string like "burrito1".
# Floats are accepted for compatibility with exported seeds.
RandomSeed: TypeAlias = int | float | str | None

# JSON-compatible document produced by the serializers.
JsonDict: TypeAlias = dict[str, object]
