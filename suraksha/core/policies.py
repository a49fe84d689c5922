"""Location and alert policy constants."""

from __future__ import annotations

# New samples closer than this to the previous one are not stored
MIN_LOCATION_DISTANCE_M = 5.0

# Default search radius for nearby users, in meters
DEFAULT_NEARBY_RADIUS_M = 500.0

# Default page size for location and alert history
DEFAULT_HISTORY_LIMIT = 50

# Owners may never drop below this many active trusted contacts
MIN_ACTIVE_CONTACTS = 1

# Soft quota reported by /sos/quota. Never blocks an SOS.
MAX_ALERTS_PER_HOUR = 10

# Location rows older than this are eligible for housekeeping
LOCATION_RETENTION_DAYS = 30
