"""System-wide constants"""

# Geometry (cm)
WIDTH_TOLERANCE = 0.1  # float drift allowed when matching gaps and fills
FLOAT_EPSILON = 1e-6

# Standard layout canvas defaults when the base store lacks data
DEFAULT_CANVAS_HEIGHT = 180.0
DEFAULT_SHELF_COUNT = 5

# Reconciliation rules
EXPAND_TOP_N = 10
EXPAND_PRIMARY_MULTIPLIER = 2.0
EXPAND_FALLBACK_MULTIPLIER = 1.5

# Fixture types
FIXTURE_TYPES = {
    'multi-tier': '多段',
    'flat-refrigerated': '平台冷蔵',
    'end-cap-refrigerated': '平台冷蔵エンド',
    'flat-frozen': '平台冷凍',
    'end-cap-frozen': '平台冷凍エンド',
}
DEFAULT_FIXTURE_TYPE = 'multi-tier'

# Store formats
STORE_FORMATS = ['MEGA', 'SuC', 'SMART', 'GO', 'FC']
