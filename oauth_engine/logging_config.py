"""
Logging configuration for the OAuth engine and the scripts using it.

The engine itself only creates module loggers; applications call
setup_global_logging() once at startup:
- Cloud Run (K_SERVICE set): google-cloud-logging with trace correlation
- Elsewhere: JSON lines on stdout
"""

import json
import logging
import os
from datetime import UTC, datetime


# httpx logs every request URL at INFO. With query string placement that
# URL carries oauth_token and oauth_signature.
URL_LOGGING_LIBRARIES = ("httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """
    One JSON object per log record.

    The service attaches extra={"extra_fields": {"provider": ..., "state": ...}}
    to handshake records; those keys are merged into the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_object = {
            "timestamp": datetime.now(UTC).isoformat(),
            "severity": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            log_object.update(record.extra_fields)

        if record.exc_info:
            log_object["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_object, default=str)


def _quiet_url_logging() -> None:
    for name in URL_LOGGING_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_global_logging(level: str | None = None) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name; defaults to LOG_LEVEL or INFO
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    _quiet_url_logging()

    if os.getenv("K_SERVICE") is not None:
        try:
            import google.cloud.logging

            client = google.cloud.logging.Client()
            client.setup_logging(log_level=logging.getLevelName(level))
            logging.info("Cloud Logging initialized for Cloud Run.")
        except Exception as e:
            logging.basicConfig(
                level=level,
                format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            )
            logging.warning(f"Cloud Logging setup failed, using basic config: {e}")
        return

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
