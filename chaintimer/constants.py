"""Central constants for Chain Timer (small, stable primitives only).

Avoid runtime/config dependent values here.
"""

# Full chain timeout after a hit (seconds); manual reset target and no-chain reset target
CHAIN_DURATION_SECONDS: int = 300

# Subtracted from the API timeout to account for reporting delay, floored at 0
NETWORK_LATENCY_OFFSET_SECONDS: int = 2

# Local countdown cadence and API poll cadence (the API itself updates ~every 30s)
TICK_INTERVAL_SECONDS: float = 1.0
POLL_INTERVAL_SECONDS: float = 5.0

# Fixed alarm points checked alongside the configurable one
CRITICAL_THRESHOLD_SECONDS: int = 15
SECONDARY_THRESHOLDS = (15, 10, 5)

# Allowed values for the configurable alarm threshold
ALARM_THRESHOLD_CHOICES = (120, 90, 60, 45, 30, 20, 15)
DEFAULT_ALARM_THRESHOLD: int = 60

DEFAULT_ALARM_VOLUME: int = 80

# How long one alarm keeps sounding before it ends on its own
ALARM_DURATION_SECONDS: float = 4.0

TORN_API_BASE_URL = "https://api.torn.com"
