"""Event logging for the edge gateway process.

Every gateway record goes to one console handler as ``event=<name> key=value``.
The HTTP client libraries are held at WARNING so forwarded traffic is logged
once, by the router and dispatcher, rather than again per upstream call.
uvicorn runs with ``log_config=None`` and propagates into the same handler.
"""

import logging
import logging.config


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_UPSTREAM_CLIENT_LOGGERS = ("httpx", "httpcore")
_EVENT_FORMAT = "%(asctime)s %(levelname)s %(name)s event=%(message)s"


def _access_log_level(log_level: str) -> str:
    # edge_route_classified already records each request below DEBUG
    if log_level == "DEBUG":
        return "DEBUG"
    return "WARNING"


def configure_logging(log_level: str) -> None:
    if log_level not in _VALID_LOG_LEVELS:
        raise ValueError(f"Invalid APP_LOG_LEVEL: {log_level}")

    loggers = {name: {"level": "WARNING"} for name in _UPSTREAM_CLIENT_LOGGERS}
    loggers["uvicorn.access"] = {"level": _access_log_level(log_level)}
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"gateway_event": {"format": _EVENT_FORMAT}},
            "handlers": {
                "gateway_console": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "gateway_event",
                }
            },
            "root": {"level": log_level, "handlers": ["gateway_console"]},
            "loggers": loggers,
        }
    )
