"""
Central configuration for the fedtrust scoring engine.

All paths, windows, bucket thresholds, and service configs defined here.
"""
import os
from pathlib import Path

# Paths (absolute)
BASE_DIR = Path(__file__).parent.absolute()
DATA_DIR = Path(os.environ.get("FEDTRUST_DATA_DIR", BASE_DIR / "data"))
LOGS_DIR = Path(os.environ.get("FEDTRUST_LOGS_DIR", BASE_DIR / "logs"))

# Reference snapshots (loaded once, read-only)
FEDERATION_STATS_FILE = DATA_DIR / "federation-stats.json"
TRUSTED_INSTANCES_FILE = DATA_DIR / "trusted-instances.json"
PROBLEMATIC_INSTANCES_FILE = DATA_DIR / "problematic-instances.json"

# Create directories if they don't exist
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# FastAPI
API_HOST = "0.0.0.0"
API_PORT = 8000
API_VERSION = "1.0.0"

# ==================== Policy classification ====================

# Language used when no distinctive script is detected
BASE_LANGUAGE = "en"

# Characters of surrounding text kept on each side of a match for display
CONTEXT_WINDOW = 30

# Characters preceding a match inspected for negation frames
NEGATION_WINDOW = 50
RED_FLAG_NEGATION_WINDOW = 20

# A true negation halves the weight and flips its sign
NEGATION_DAMPING = 0.5

# Joined rule text beyond this length is not scanned
MAX_POLICY_TEXT_CHARS = 50_000

# Unbounded ".*" / ".+" gaps in rule patterns compile as ".{0,N}" / ".{1,N}"
# so matching stays linear in the text length
PATTERN_GAP_LIMIT = 80

# Raw score -> display score breakpoints (strictly increasing, concave)
NORMALIZATION_BREAKPOINTS = [
    (0.0, 0.0),
    (8.0, 8.0),
    (20.0, 15.0),
    (40.0, 25.0),
    (70.0, 37.5),
]

# meets_minimum: positive matches and distinct core categories required
MINIMUM_POSITIVE_MATCHES = 4
MINIMUM_CORE_CATEGORIES = 3

# ==================== Composite score ====================

AXIS_MAX = 25
FEDERATION_PARTIAL_CREDIT = 15
TRUST_WARNING_SCORE = 10
TRUST_CRITICAL_SCORE = 0
COVENANT_BONUS = 5
ERROR_PENALTY_PER_ERROR = 2
ERROR_PENALTY_CAP = 10

# Score labels (lower bound inclusive)
SCORE_LABELS = [
    (80, "Excellent", "success"),
    (60, "Good", "success"),
    (40, "Fair", "warning"),
    (20, "Poor", "warning"),
    (0, "Critical", "danger"),
]

# ==================== Network health ====================

# Percentile -> points for federation size (highest first)
FEDERATION_SIZE_POINTS = [
    ("p95", 95, 10),
    ("p90", 90, 9),
    ("p75", 75, 8),
    ("p50", 50, 6),
    ("p25", 25, 4),
]
FEDERATION_SIZE_FLOOR_POINTS = 2

REPUTATION_POINTS = {
    "trusted": 8,
    "neutral": 4,
    "problematic": 0,
}

# Block ratio (percent, exclusive upper bound) -> points
BLOCK_RATIO_BUCKETS = [
    (1.0, 4),
    (5.0, 3),
    (15.0, 2),
    (30.0, 1),
]
BLOCKING_NOT_EXPOSED_POINTS = 2
BLOCKING_EMPTY_POINTS = 3
BLOCKING_EMPTY_LARGE_POINTS = 2
LARGE_INSTANCE_PEERS = 100

# External blocklist hits (warning/critical) -> points
WIDELY_BLOCKED_THRESHOLD = 5

# Neutral defaults used when reference snapshots are unavailable
NETWORK_DEGRADED_DEFAULTS = {
    "federation_health": 5,
    "reputation": 4,
    "blocking_behavior": 1,
    "reciprocity": 0,
}

# ==================== Metadata maturity ====================

# User count (exclusive upper bound) -> (points, estimated age in days)
USER_COUNT_BUCKETS = [
    (10, 0, 30),
    (50, 2, 90),
    (500, 4, 180),
    (5000, 6, 365),
]
USER_COUNT_TOP = (8, 730)
UNKNOWN_USERS_POINTS = 2
RECENT_INSTANCE_DAYS = 90
RECENT_INSTANCE_MATURITY_CAP = 4
LOW_ACTIVITY_PENALTY = 2

REGISTRATION_POINTS = {
    "closed": 5,
    "approval-required": 4,
    "open-with-antispam": 3,
    "open": 1,
    "unknown": 2,
}

DESCRIPTION_MAX_POINTS = 5

# ==================== Events ====================

# Event ID definitions (Windows Event Viewer style)
EVENT_IDS = {
    # Scoring events (1001-1999)
    1001: "Instance scored",
    1002: "Instance scored below warning threshold",
    1003: "Instance found on critical blocklist",
    1004: "Rule pattern skipped - diagnostic recorded",

    # Policy events (2001-2999)
    2001: "Moderation policy analysis completed",

    # System events (4001-4999)
    4001: "Scoring pipeline started",
    4002: "Reference snapshot unavailable - using defaults",
    4003: "Reference snapshot ingestion completed",
}

# Overall scores below this raise event 1002
LOW_SCORE_THRESHOLD = 40

# Logging settings
EVENT_LOG_FILE = LOGS_DIR / "events.jsonl"
