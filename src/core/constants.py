"""
===============================================================================
GNC PROJECT - Time Constants
===============================================================================
Timeline constants shared by the mission data structures.

Instants are expressed everywhere as seconds from a caller-chosen reference
epoch (mission elapsed time, or seconds past J2000).  The two infinite
sentinels bound every timeline: they compare below / above every finite
instant and are what span boundaries report when a span is open-ended.
===============================================================================
"""

import sys

import numpy as np


# =============================================================================
# TIMELINE SENTINELS
# =============================================================================
PAST_INFINITY = -np.inf                # Start of every timeline
FUTURE_INFINITY = np.inf               # End of every timeline

# =============================================================================
# TIME UNITS
# =============================================================================
SECONDS_PER_DAY = 86400.0

# =============================================================================
# VALIDITY MAP DEFAULTS
# =============================================================================
DEFAULT_MAX_SPANS = sys.maxsize        # No limit on retained spans
DEFAULT_MAX_RANGE = np.inf             # No limit on retained range (s)
