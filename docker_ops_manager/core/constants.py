"""Constants used throughout Docker Ops Manager."""


# Configuration locations
DEFAULT_CONFIG_DIR_NAME = "docker-ops-manager"
LOG_DIR_NAME = "logs"
STATE_FILE_NAME = "state.json"
CONFIG_FILE_NAME = "config.json"
LOG_FILE_PREFIX = "docker_ops_"

# Environment variables understood by the config manager
ENV_PREFIX = "DOCKER_OPS_"

# Logging defaults
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_ROTATION_DAYS = 7
LOG_LEVELS = ["DEBUG", "INFO", "WARN", "WARNING", "ERROR"]

# State defaults
DEFAULT_MAX_UNIT_HISTORY = 10

# Compose project naming
DEFAULT_PROJECT_NAME_PATTERN = "project-<service.name>-<DD-MM-YY>"
SERVICE_NAME_PLACEHOLDER = "<service.name>"
DATE_PLACEHOLDER = "<DD-MM-YY>"

# Timeout values (seconds)
DEFAULT_READINESS_TIMEOUT = 60
DEFAULT_COMMAND_TIMEOUT = 60
COMPOSE_TIMEOUT = 300  # 5 minutes
PULL_TIMEOUT = 300  # 5 minutes
DEFAULT_STOP_TIMEOUT = 30
POLL_INTERVAL = 1.0

# Exit codes reported by the command executor
TIMEOUT_EXIT_CODE = 124
COMMAND_NOT_FOUND_EXIT_CODE = 127
INVALID_COMMAND_EXIT_CODE = 2  # shell syntax error

# Forced removal during regeneration
MAX_REMOVAL_ATTEMPTS = 3
REMOVAL_BACKOFF = 1.0

# Container runtime
DOCKER_BINARY = "docker"
DEFAULT_COMPOSE_COMMAND = "docker compose"
DEFAULT_LOG_TAIL = 50

# Config document conventions
EXTENSION_KEY = "x-docker-ops"
READINESS_TIMEOUT_KEY = "readiness_timeout"
COMPOSE_FILE_NAMES = [
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
]
STACK_FILE_NAMES = [
    "docker-stack.yml",
    "docker-stack.yaml",
]
CONFIG_FILE_SUFFIXES = (".yml", ".yaml")

# Docker container names: letter or underscore first, then [A-Za-z0-9._-]
UNIT_NAME_PATTERN = r"[A-Za-z_][A-Za-z0-9._-]*"
