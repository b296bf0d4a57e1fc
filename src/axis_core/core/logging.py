"""Process-wide logging setup."""

import json
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Text formatter that appends ``extra={...}`` fields as ``key=value``."""

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        line = super().formatMessage(record)
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES
        }
        if not context:
            return line
        fields = " ".join(
            f"{key}={json.dumps(value, default=str)}"
            for key, value in sorted(context.items())
        )
        return f"{line} {fields}"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once for CLI and server processes."""

    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter(LOG_FORMAT))
    logging.basicConfig(level=level.upper(), handlers=[handler])
