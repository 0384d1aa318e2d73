"""
Configuration constants.

Centralizes all magic numbers and configuration values used by the level
generation engine. Organized by functional area for easy maintenance.
"""

# =============================================================================
# LEVEL DEFAULTS
# =============================================================================

# Used when a config omits the corresponding key.
DEFAULT_LEVEL_WIDTH = 32  # tiles
DEFAULT_LEVEL_HEIGHT = 24  # tiles
DEFAULT_TILE_SIZE = 32  # pixels
DEFAULT_BIOME = "dungeon"
DEFAULT_THEME = "medieval"
DEFAULT_DIFFICULTY = "normal"

# Upper bound for seeds drawn when the caller does not supply one.
GENERATED_SEED_LIMIT = 2**31 - 1

LEVEL_FORMAT_VERSION = "1.0"

# =============================================================================
# PLACEMENT
# =============================================================================

# Bounded retry placement gives up after this many random draws.
PLACEMENT_MAX_ATTEMPTS = 20

# =============================================================================
# DUNGEON
# =============================================================================

DUNGEON_MIN_ROOMS = 5
DUNGEON_MAX_ROOMS = 11
DUNGEON_ROOM_WIDTH_RANGE = (4, 9)
DUNGEON_ROOM_HEIGHT_RANGE = (3, 6)
DUNGEON_CORRIDOR_WIDTH_RANGE = (1, 2)
DUNGEON_DOOR_CHANCE = 0.7
DUNGEON_TREASURE_CHANCE = 0.4
DUNGEON_PUZZLE_ELEMENT_CHANCE = 0.3
DUNGEON_NPC_CHANCE = 0.1
DUNGEON_MAX_ENEMIES_PER_ROOM = 3

# =============================================================================
# CAVE
# =============================================================================

# Cellular automata tuning:
# - initial density 0.45 with 5 iterations gives balanced caves
CAVE_WALL_PROBABILITY = 0.45
CAVE_SMOOTHING_ITERATIONS = 5
CAVE_WALL_SURVIVAL_LIMIT = 4  # wall stays a wall with >= this many wall neighbors
CAVE_WALL_BIRTH_LIMIT = 5  # open cell becomes a wall with >= this many

# Flood-fill region classification thresholds (component sizes in tiles).
CAVE_CHAMBER_MIN_SIZE = 50  # size > this => chamber
CAVE_TUNNEL_MIN_SIZE = 5  # size > this => tunnel, otherwise noise

CAVE_TREASURE_CHANCE = 0.6
CAVE_HERMIT_CHANCE = 0.2

# =============================================================================
# FOREST
# =============================================================================

FOREST_TREE_COVERAGE = 0.15
FOREST_BUSH_COVERAGE = 0.08
FOREST_TRAIL_WIDTH = 1
FOREST_CLEARING_STRUCTURE_CHANCE = 0.4
FOREST_CAMPFIRE_CHANCE = 0.3
FOREST_TREASURE_CHANCE = 0.5
FOREST_DRUID_CHANCE = 0.25

# =============================================================================
# TOWN
# =============================================================================

TOWN_STREET_WIDTH = 2
TOWN_MARKET_STALL_CHANCE = 0.4
TOWN_MERCHANT_CHANCE = 0.3
TOWN_TREASURE_CHANCE = 0.15

# =============================================================================
# CASTLE
# =============================================================================

CASTLE_WALL_THICKNESS = 2
CASTLE_TOWER_SIZE = 3
CASTLE_KEEP_SIZE = 8
CASTLE_MOSS_CHANCE = 0.1
CASTLE_KEEP_TREASURE_CHANCE = 0.7
CASTLE_SECTION_TREASURE_CHANCE = 0.2
CASTLE_SECTION_LIGHT_CHANCE = 0.6
CASTLE_BOSS_CHANCE = 0.3  # always spawns on "hard"

# =============================================================================
# POST-PROCESSING / VALIDATION
# =============================================================================

# Fast pre-filter: a level needs more walkable tiles than this.
CONNECTIVITY_MIN_WALKABLE = 10
# Share of walkable tiles that must be reachable from the entrance.
CONNECTIVITY_MIN_REACHABLE_RATIO = 0.8

# Fraction of walkable tiles that receive an ambient effect tag.
DECORATION_DENSITY = 0.01

# Walkable tiles per allowed enemy, scaled by the difficulty enemy density.
ENEMY_TILES_PER_SLOT = 8

# =============================================================================
# EXPORT
# =============================================================================

EXPORT_FORMAT_TAG = "tpt_level_v1"
EXPORT_JSON_INDENT = 2

# =============================================================================
# QUALITY ASSESSMENT
# =============================================================================

QUALITY_MAX_DIMENSION = 200  # tiles, per axis
QUALITY_MIN_WALKABLE_PERCENTAGE = 0.3
QUALITY_ISOLATED_AREA_SIZE = 50  # components smaller than this are isolated
QUALITY_MAX_ISOLATED_AREAS = 3
QUALITY_MIN_MAIN_AREA_RATIO = 0.8
QUALITY_MIN_ENTITIES = 5
QUALITY_MAX_ENTITIES = 200
QUALITY_MIN_TREASURE_PER_1000_TILES = 1.0
QUALITY_MAX_DIFFICULTY_SCORE = 5.0
QUALITY_MAX_DEAD_ENDS = 10
QUALITY_MIN_JUNCTIONS = 2
QUALITY_LIGHT_RADIUS = 5  # tiles lit around each light source
QUALITY_MIN_LIGHT_COVERAGE = 0.4
# Points deducted per issue severity, and per warning.
QUALITY_SEVERITY_PENALTIES = {"critical": 25, "major": 15, "minor": 5}
QUALITY_WARNING_PENALTY = 2
# More warnings than this downgrades an otherwise valid level.
QUALITY_MAX_WARNINGS_FOR_VALID = 3
