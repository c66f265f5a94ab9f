"""Environment-driven configuration for the push gateway client.

Every value is read once at import time. Numeric settings fall back to their
defaults when the variable is empty or cannot be parsed.
"""

import os

__all__ = [
    "APNS_CONNECT_TIMEOUT",
    "APNS_CONN_IDLE_TIMEOUT",
    "APNS_DEBUG",
    "APNS_ENVIRONMENT",
    "APNS_FEEDBACK_HOST",
    "APNS_FEEDBACK_PORT",
    "APNS_GATEWAY_HOST",
    "APNS_GATEWAY_PORT",
    "APNS_IO_TIMEOUT",
    "APNS_LOG_FORMAT",
    "APNS_LOG_HUMAN_OUTPUT",
    "APNS_LOG_JSON_FILE",
    "APNS_LOG_NAME",
    "APNS_METRICS_PORT",
    "APNS_OPEN_MAX_ATTEMPTS",
    "APNS_OPEN_RETRY_DELAY",
    "APNS_OPERATION_MAX_ATTEMPTS",
    "APNS_PERF_THRESHOLD_MS",
    "APNS_PERF_TRACKING",
    "FEEDBACK_ENDPOINTS",
    "GATEWAY_ENDPOINTS",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
APNS_LOG_NAME: str = "apns_pusher"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Gateway endpoints per deployment environment: (gateway, feedback)
GATEWAY_ENDPOINTS: dict[str, tuple[str, int]] = {
    "sandbox": ("gateway.sandbox.push.apple.com", 2195),
    "production": ("gateway.push.apple.com", 2195),
}
FEEDBACK_ENDPOINTS: dict[str, tuple[str, int]] = {
    "sandbox": ("feedback.sandbox.push.apple.com", 2196),
    "production": ("feedback.push.apple.com", 2196),
}

_environment = os.environ.get("APNS_ENVIRONMENT", "sandbox").casefold()
APNS_ENVIRONMENT: str = _environment if _environment in GATEWAY_ENDPOINTS else "sandbox"

APNS_GATEWAY_HOST: str = os.environ.get("APNS_GATEWAY_HOST") or GATEWAY_ENDPOINTS[APNS_ENVIRONMENT][0]
APNS_GATEWAY_PORT: int = _env_int("APNS_GATEWAY_PORT", GATEWAY_ENDPOINTS[APNS_ENVIRONMENT][1])
APNS_FEEDBACK_HOST: str = os.environ.get("APNS_FEEDBACK_HOST") or FEEDBACK_ENDPOINTS[APNS_ENVIRONMENT][0]
APNS_FEEDBACK_PORT: int = _env_int("APNS_FEEDBACK_PORT", FEEDBACK_ENDPOINTS[APNS_ENVIRONMENT][1])

# Connection lifecycle
APNS_CONN_IDLE_TIMEOUT: float = _env_float("APNS_CONN_IDLE_TIMEOUT", 1800.0)
APNS_CONNECT_TIMEOUT: float = _env_float("APNS_CONNECT_TIMEOUT", 10.0)
APNS_IO_TIMEOUT: float = _env_float("APNS_IO_TIMEOUT", 30.0)
APNS_OPEN_MAX_ATTEMPTS: int = _env_int("APNS_OPEN_MAX_ATTEMPTS", 5)
APNS_OPEN_RETRY_DELAY: float = _env_float("APNS_OPEN_RETRY_DELAY", 1.0)
APNS_OPERATION_MAX_ATTEMPTS: int = _env_int("APNS_OPERATION_MAX_ATTEMPTS", 5)

APNS_DEBUG: bool = os.environ.get("APNS_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
APNS_LOG_FORMAT: str = os.environ.get("APNS_LOG_FORMAT", "human")  # "json", "human", or "both"
APNS_LOG_JSON_FILE: str | None = os.environ.get("APNS_LOG_JSON_FILE") or None
APNS_LOG_HUMAN_OUTPUT: str = os.environ.get("APNS_LOG_HUMAN_OUTPUT", "stderr")  # "stdout", "stderr", or file path

# Performance Instrumentation
APNS_PERF_TRACKING: bool = os.environ.get("APNS_PERF_TRACKING", "true").casefold() in YES_ANSWER
_perf_threshold = os.environ.get("APNS_PERF_THRESHOLD_MS", "500")
APNS_PERF_THRESHOLD_MS: int = int(_perf_threshold) if _perf_threshold and _perf_threshold.isdigit() else 500

APNS_METRICS_PORT: int = _env_int("APNS_METRICS_PORT", 9400)
