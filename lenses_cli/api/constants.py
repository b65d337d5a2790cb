"""
Constants for API Client Module
================================

Header names, content types, endpoint paths and streaming frame markers
shared by the transport, the body reader and the resource methods.
"""

# Default configuration
DEFAULT_CONTEXT = "master"
DEFAULT_PROCESSOR_LOG_LINES = 100

# Headers
TOKEN_HEADER = "X-Kafka-Lenses-Token"
CONTENT_TYPE_HEADER = "Content-Type"
ACCEPT_HEADER = "Accept"
ACCEPT_ENCODING_HEADER = "Accept-Encoding"
CONTENT_ENCODING_HEADER = "Content-Encoding"
AUTHORIZATION_HEADER = "Authorization"

GZIP_ENCODING = "gzip"

# Content types
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_TEXT = "text/plain"
CONTENT_TYPE_HTML = "text/html"
SCHEMA_API_VERSION = "v1"
CONTENT_TYPE_SCHEMA_JSON = f"application/vnd.schemaregistry.{SCHEMA_API_VERSION}+json"
EVENT_STREAM_ACCEPT = "application/json, text/event-stream"
CONFIG_ACCEPT = "application/json, text/plain"

# Streaming frames: data:<digit><payload>
DATA_PREFIX = b"data"
FRAME_PREFIX = DATA_PREFIX + b":"
MIN_FRAME_LENGTH = len(FRAME_PREFIX) + 1

# Session
LOGIN_PATH = "api/login"
AUTH_PATH = "api/auth"
LOGOUT_PATH = "api/logout?token="
LICENSE_PATH = "api/license"
CONFIG_PATH = "api/config"

# Config keys
EXECUTION_MODE_KEY = "lenses.sql.execution.mode"
CONNECT_CLUSTERS_KEY = "lenses.kafka.connect.clusters"

# SQL
VALIDATE_SQL_PATH = "api/sql/validation?sql="
QUERIES_PATH = "api/sql/queries"

# Topics
TOPICS_PATH = "api/topics"

# Kafka Connect
CONNECTORS_PATH = "api/proxy-connect/{cluster}/connectors"

# Schema registry
SUBJECTS_PATH = "api/proxy-sr/subjects"
SCHEMA_BY_ID_PATH = "api/proxy-sr/schemas/ids/{id}"
COMPATIBILITY_LEVEL_PATH = "api/proxy-sr/config"
SCHEMA_LATEST_VERSION = "latest"

# ACLs and quotas
ACL_PATH = "api/acl"
QUOTAS_PATH = "api/quotas"

# Alerts
ALERTS_PATH = "api/alerts"
ALERT_SETTINGS_PATH = "api/alerts/settings"
ALERTS_LIVE_PATH = "api/sse/alerts"

# Audit
AUDIT_PATH = "api/audit"
AUDIT_LIVE_PATH = "api/sse/audit"

# Logs
LOGS_INFO_PATH = "api/logs/INFO"
LOGS_METRICS_PATH = "api/logs/METRICS"
PROCESSOR_LOGS_LIVE_PATH = "api/sse/k8/logs/{cluster}/{namespace}/{pod}"

# Data policies
POLICY_PATH = "/api/protection/policy"

# Users and groups
USERS_PATH = "api/v1/user"
GROUPS_PATH = "api/v1/group"
