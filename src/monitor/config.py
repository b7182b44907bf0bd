"""
Predefined monitor configurations for different operational scenarios.
"""

from .models import MonitorConfig

# Reference daemon settings: 30s polling, 1h and 15min windows
DEFAULT_CONFIG = MonitorConfig()

# Quick feedback while developing (short windows, 5s polling)
FAST_CONFIG = MonitorConfig(
    poll_interval_seconds=5,
    mid_term_seconds=600,
    short_term_seconds=150,
    output_path="SLABLog-fast.txt",
)

# Fewer false positives: ~99.5% one-sided cut
STRICT_CONFIG = MonitorConfig(
    critical_value=2.576,
    retry_attempts=5,
)

# Long running hosts: cap the since-start history at one day of 30s samples
BOUNDED_CONFIG = MonitorConfig(
    history_limit=2880,
)

CONFIGS = {
    "default": DEFAULT_CONFIG,
    "fast": FAST_CONFIG,
    "strict": STRICT_CONFIG,
    "bounded": BOUNDED_CONFIG,
}
