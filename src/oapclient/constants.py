"""
Application-wide constants for oapclient.

Administrator defaults, timeouts, size limits, protocol literals and
environment variable names are centralized here.
"""

from __future__ import annotations

import importlib.metadata

try:
    __version__ = importlib.metadata.version("oapclient")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "ADMIN_ROLE",
    "BACK_URL_CONFIGS",
    "BACK_URL_TASKS",
    "BYTES_PER_MB",
    "DEFAULT_ADMINISTRATOR_ADDRESS",
    "DEFAULT_ADMINISTRATOR_PORT",
    "DEFAULT_TIMEOUT",
    "ENV_ADDRESS",
    "ENV_PASS",
    "ENV_PORT",
    "ENV_TIMEOUT",
    "ENV_USER",
    "MAX_PORT",
    "MAX_RESPONSE_SIZE",
    "MAX_TIMEOUT",
    "MIN_PORT",
    "MIN_TIMEOUT",
    "RECV_BUFFER_SIZE",
    "SETTINGS_PREFIX",
    "XML_PREVIEW_LENGTH",
    "__version__",
]

# ── Administrator daemon ──────────────────────────────────────────────

# Address the administrator listens on when nothing else is configured
DEFAULT_ADMINISTRATOR_ADDRESS = "127.0.0.1"

# Default administrator port
DEFAULT_ADMINISTRATOR_PORT = 9393

MIN_PORT = 1
MAX_PORT = 65535


# ── Timeout values (seconds) ──────────────────────────────────────────

# Socket timeout and wall-clock limit for reading one reply
DEFAULT_TIMEOUT = 30

MIN_TIMEOUT = 1
MAX_TIMEOUT = 3600


# ── Size units ────────────────────────────────────────────────────────

BYTES_PER_MB = 1024 * 1024


# ── Size limits (bytes) ───────────────────────────────────────────────

# Maximum reply size accepted from the administrator (50 MB)
MAX_RESPONSE_SIZE = 50 * 1024 * 1024

# Socket recv buffer size
RECV_BUFFER_SIZE = 8192

# XML preview truncation length for log and error messages (characters)
XML_PREVIEW_LENGTH = 300


# ── Protocol literals ─────────────────────────────────────────────────

# Role name that may use the administrator operations
ADMIN_ROLE = "Admin"

# Multi-value parameter prefix carrying settings rows for modify_settings
SETTINGS_PREFIX = "method_data:"

# Navigation targets for error pages
BACK_URL_TASKS = "/omp?cmd=get_tasks"
BACK_URL_CONFIGS = "/omp?cmd=get_configs"


# ── Environment variable names ──────────────────────────────────────

ENV_ADDRESS = "OAP_ADDRESS"
ENV_PORT = "OAP_PORT"
ENV_TIMEOUT = "OAP_TIMEOUT"
ENV_USER = "OAP_USER"
ENV_PASS = "OAP_PASS"
