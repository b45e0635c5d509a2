"""module to hold constants used throughout the project"""

# Earth radius, kept in two units on purpose: distances are reported in
# meters, dead reckoning works in kilometers.
EARTH_RADIUS_M = 6371000
EARTH_RADIUS_KM = 6371

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE

# Ground movement reserved at each end of a flight
TAXI_TIME_MS = 10 * MS_PER_MINUTE

# Spacing of precomputed scrubber samples
SAMPLE_INTERVAL_MS = 5 * MS_PER_MINUTE

# Below this reported speed a live fix is not moved between polls
MIN_EXTRAPOLATION_SPEED_KMH = 50

UNKNOWN_DURATION = "Unknown duration"
