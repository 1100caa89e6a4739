import json
import logging
import os
import sys

_TEXT_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
_FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter for structured debug output.

    Produces one JSON object per log record with fields: ts, level, logger, msg.
    Exception info is included as an "exc" field when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_formatter(debug_format: str, fmt: str) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=_DATE_FORMAT)
    return logging.Formatter(fmt, datefmt=_DATE_FORMAT)


def setup_logging(
    mode: str = "cli",
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
) -> None:
    """
    Configure logging based on execution mode.

    Args:
        mode: "background" for file-only logging (sync triggered by a
            watcher or scheduler, no terminal attached), "cli" for stderr.
        debug: If True, overrides AGENTCTL_LOG_LEVEL to DEBUG.
        log_file: Custom log file path (overrides AGENTCTL_LOG_FILE).
        debug_format: "text" (default) or "json" for structured output.

    Environment variables:
        AGENTCTL_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR).
                   Default: WARNING for background mode, INFO for CLI mode.
        AGENTCTL_LOG_FILE: Log file path for background mode.
                  Default: /tmp/agentctl-sync.log
    """
    default_level = "WARNING" if mode == "background" else "INFO"
    env_level = os.getenv("AGENTCTL_LOG_LEVEL", default_level).upper()

    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, env_level, logging.INFO)

    if mode == "background":
        # Priority: log_file param > AGENTCTL_LOG_FILE env var > default
        final_log_file = log_file or os.getenv(
            "AGENTCTL_LOG_FILE", "/tmp/agentctl-sync.log"
        )
        logging.basicConfig(
            level=log_level,
            format=_TEXT_FORMAT,
            datefmt=_DATE_FORMAT,
            filename=final_log_file,
            filemode="a",
        )
        return

    # CLI mode: stderr keeps stdout clean for report output.
    # When a log_file is given, also write to it.
    handlers: list[logging.Handler] = []
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_make_formatter(debug_format, _TEXT_FORMAT))
    handlers.append(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            _make_formatter(debug_format, _FILE_FORMAT)
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
    )

    # Silence third-party libs unless DEBUG
    if log_level != logging.DEBUG:
        logging.getLogger("charset_normalizer").setLevel(logging.WARNING)
