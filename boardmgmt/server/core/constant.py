"""Server-wide constants."""

PROJECT_NAME = "BoardMgmt"
API_V1_STR = "/api/v1"
VERSION = "1.0.0"

UPLOADS_URL_PREFIX = "/uploads"
REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_THRESHOLD_MS = 1000
