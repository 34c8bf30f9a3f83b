"""
Configuration constants for the training progression engine.

All adjustable parameters are centralized here for easy tuning.
Runtime settings (database path, log level, consistency windows) are
read from YAML by core.engine.config_loader; the values below are the
defaults it falls back to.
"""

from typing import Final

# =============================================================================
# LEVELING CURVE
# =============================================================================

# Total XP required to reach levels 1..20 (index 0 = level 1)
XP_THRESHOLDS: Final[tuple[int, ...]] = (
    0,  # Level 1
    100,
    250,
    500,
    850,  # Level 5
    1300,
    1900,
    2650,
    3550,
    4600,  # Level 10
    5800,
    7200,
    8800,
    10600,
    12600,  # Level 15
    14800,
    17200,
    19800,
    22600,
    25600,  # Level 20
)

# Beyond the table each level costs ~15% more than the previous threshold
LEVEL_GROWTH_NUMERATOR: Final[int] = 23
LEVEL_GROWTH_DENOMINATOR: Final[int] = 20  # 23/20 = 1.15

# =============================================================================
# XP CALCULATION
# =============================================================================

PROGRESSION_BONUS_MULTIPLIER: Final[str] = "0.2"  # 20% for beating the previous set
BODYWEIGHT_BASE_FACTOR: Final[int] = 10  # reps * difficulty * factor for bodyweight work
DEFAULT_DIFFICULTY_MULTIPLIER: Final[float] = 1.0

# =============================================================================
# CONSISTENCY METRICS
# =============================================================================

COMPLETION_WINDOW_SESSIONS: Final[int] = 10  # Sessions averaged for set completion
WEEKS_PER_MONTH: Final[int] = 4  # Flat approximation for the monthly target
FALLBACK_DAYS_PER_WEEK: Final[int] = 3  # Used when a plan defines no days

# =============================================================================
# SESSIONS
# =============================================================================

DEFAULT_REST_SECONDS: Final[int] = 90
DEFAULT_REPS: Final[int] = 8
WEIGHT_UNITS: Final[tuple[str, ...]] = ("kg", "lbs")
PLAN_TYPES: Final[tuple[str, ...]] = ("weightlifting", "bodyweight", "mobility")

# =============================================================================
# DISPLAY
# =============================================================================

MUSCLE_GROUP_ORDER: Final[tuple[str, ...]] = (
    "Chest",
    "Back",
    "Shoulders",
    "Biceps",
    "Triceps",
    "Forearms",
    "Quads",
    "Hamstrings",
    "Glutes",
    "Calves",
    "Core",
    "Full Body",
)

PROGRESS_CHART_LIMIT: Final[int] = 30  # Sessions shown in the XP progress chart
