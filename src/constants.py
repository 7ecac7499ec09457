"""Application constants shared across the mission control service."""

# Service
SERVICE_NAME = "drone-mission-control"

# DynamoDB key layout (single table)
PARTITION_KEY_DRONE = "DRONE#"
PARTITION_KEY_MISSION = "MISSION#"
SORT_KEY_METADATA = "METADATA"
SORT_KEY_PREFIX_TELEMETRY = "TELEMETRY#"
SORT_KEY_PREFIX_MISSION = "MISSION#"
STATUS_KEY_PREFIX_DRONE = "DRONE_STATUS#"
STATUS_KEY_PREFIX_MISSION = "MISSION_STATUS#"

INDEX_STATUS = "gsi1-status-start"
INDEX_DRONE_SCHEDULE = "gsi2-drone-schedule"

# MQTT
MQTT_TOPIC_PREFIX = "drone-fleet"
MQTT_TELEMETRY_TOPIC = "telemetry"
MQTT_QOS = 1

# Telemetry distribution
DEFAULT_SUBSCRIBER_QUEUE_SIZE = 1000
IOT_FLUSH_TIMEOUT_SECONDS = 5.0

# Query defaults
DEFAULT_UPCOMING_WINDOW_HOURS = 24
DEFAULT_STATS_WINDOW_HOURS = 24
DEFAULT_TELEMETRY_HISTORY_LIMIT = 100
DEFAULT_RETENTION_DAYS = 30

# Geodesy
EARTH_RADIUS_KM = 6371.0
