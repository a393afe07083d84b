"""Central logging configuration for the runtime manager.

Runtime installs touch the user's application folder and talk to several
remote feeds, so every run records its diagnostics in a log file that can be
attached to bug reports.  Home directories and user names are redacted before
they reach the file.

Two environment variables control where the log file is written:

``DECANTER_LOG_FILE``
    Absolute path to the log file that should be created.

``DECANTER_LOG_DIR``
    Directory where ``decanter.log`` will be created.  Ignored when
    ``DECANTER_LOG_FILE`` is present.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from enum import Enum
from pathlib import Path
from typing import Iterable

_LOG_FILE_ENV = "DECANTER_LOG_FILE"
_LOG_DIR_ENV = "DECANTER_LOG_DIR"
_DEFAULT_DIRNAME = ".decanter"
_DEFAULT_LOGNAME = "decanter.log"
_CONFIGURED = False
_LOG_PATH: Path | None = None
_HANDLER_TAG = "_decanter_logging_handler"
_FILE_HANDLER: logging.FileHandler | None = None
_STREAM_HANDLER: logging.StreamHandler | None = None

USER_PLACEHOLDER = "<user>"
USER_HOME_PLACEHOLDER = "<user_home>"


class LogVerbosity(str, Enum):
    """Verbosity levels supported by the log file and console."""

    DISABLED = "disabled"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    VERBOSE = "verbose"


_VERBOSITY_LEVELS: dict[LogVerbosity, int] = {
    LogVerbosity.DISABLED: logging.CRITICAL + 1,
    LogVerbosity.ERROR: logging.ERROR,
    LogVerbosity.WARNING: logging.WARNING,
    LogVerbosity.INFO: logging.INFO,
    LogVerbosity.VERBOSE: logging.DEBUG,
}

_DEFAULT_VERBOSITY = LogVerbosity.INFO
_CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


def _collect_username_candidates() -> set[str]:
    candidates = {Path.home().name}
    for env_var in ("USER", "LOGNAME", "USERNAME"):
        value = os.environ.get(env_var)
        if value:
            candidates.add(value)
    return {candidate.strip() for candidate in candidates if candidate and candidate.strip()}


def _collect_home_candidates() -> set[str]:
    candidates = {str(Path.home())}
    home_env = os.environ.get("HOME")
    if home_env:
        candidates.add(os.path.expanduser(home_env))
    normalised = {os.path.normpath(candidate) for candidate in candidates if candidate}
    return {candidate for candidate in normalised if candidate not in {os.sep, "."}}


def _build_redaction_patterns() -> list[tuple[re.Pattern[str], str]]:
    patterns: list[tuple[re.Pattern[str], str]] = []
    # Longest paths first so nested homes are replaced whole.
    for home in sorted(_collect_home_candidates(), key=len, reverse=True):
        patterns.append((re.compile(re.escape(home)), USER_HOME_PLACEHOLDER))

    for username in sorted(_collect_username_candidates(), key=len, reverse=True):
        escaped = re.escape(username)
        if any(character.isalnum() for character in username):
            pattern = re.compile(rf"(?<!\w){escaped}(?!\w)", re.IGNORECASE)
        else:
            pattern = re.compile(escaped, re.IGNORECASE)
        patterns.append((pattern, USER_PLACEHOLDER))
    return patterns


_REDACTION_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(_build_redaction_patterns())


def _sanitize_text(message: str) -> str:
    if not message or not _REDACTION_PATTERNS:
        return message
    redacted = message
    for pattern, replacement in _REDACTION_PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


class _RedactingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return _sanitize_text(super().format(record))


def ensure_app_logging(verbosity: LogVerbosity | str | None = None) -> Path:
    """Configure the root logger for the runtime manager.

    The first invocation installs a file handler and, when stderr is a
    terminal, a console handler showing warnings and errors.  Later calls only
    apply ``verbosity`` and return the configured log file path.
    """

    global _CONFIGURED, _LOG_PATH, _FILE_HANDLER, _STREAM_HANDLER

    if _CONFIGURED and _LOG_PATH is not None:
        if verbosity is not None:
            set_file_log_verbosity(verbosity)
        return _LOG_PATH

    log_path = _resolve_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    formatter = _RedactingFormatter(
        "%(asctime)s %(levelname)s [%(threadName)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(_VERBOSITY_LEVELS[_CURRENT_VERBOSITY])
    file_handler.setFormatter(formatter)
    setattr(file_handler, _HANDLER_TAG, True)
    root.addHandler(file_handler)
    _FILE_HANDLER = file_handler

    if _should_log_to_stderr(root.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(logging.WARNING)
        stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        setattr(stream_handler, _HANDLER_TAG, True)
        root.addHandler(stream_handler)
        _STREAM_HANDLER = stream_handler

    _CONFIGURED = True
    _LOG_PATH = log_path

    if verbosity is not None:
        set_file_log_verbosity(verbosity)
    logging.getLogger(__name__).info(
        "Writing runtime manager logs to %s (verbosity=%s)",
        log_path,
        _CURRENT_VERBOSITY.value,
    )
    return log_path


def set_file_log_verbosity(verbosity: LogVerbosity | str) -> None:
    """Adjust the minimum severity recorded in the log file."""

    global _CURRENT_VERBOSITY

    if isinstance(verbosity, str) and not isinstance(verbosity, LogVerbosity):
        try:
            verbosity = LogVerbosity(verbosity.lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported log verbosity: {verbosity}") from exc

    ensure_app_logging()
    _CURRENT_VERBOSITY = verbosity
    if _FILE_HANDLER is not None:
        _FILE_HANDLER.setLevel(_VERBOSITY_LEVELS[verbosity])
    if _STREAM_HANDLER is not None:
        if verbosity is LogVerbosity.VERBOSE:
            _STREAM_HANDLER.setLevel(logging.DEBUG)
        else:
            _STREAM_HANDLER.setLevel(logging.WARNING)
    logging.getLogger(__name__).debug("File log verbosity set to %s", verbosity.value)


def get_file_log_verbosity() -> LogVerbosity:
    return _CURRENT_VERBOSITY


def _resolve_log_path() -> Path:
    env_file = os.environ.get(_LOG_FILE_ENV)
    if env_file:
        return Path(env_file).expanduser()

    env_dir = os.environ.get(_LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser() / _DEFAULT_LOGNAME

    return Path.home() / _DEFAULT_DIRNAME / "logs" / _DEFAULT_LOGNAME


def _should_log_to_stderr(handlers: Iterable[logging.Handler]) -> bool:
    stderr = getattr(sys, "stderr", None)
    is_tty = getattr(stderr, "isatty", None)
    if not callable(is_tty):
        return False
    try:
        if not is_tty():
            return False
    except (OSError, ValueError):
        return False

    for handler in handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream is stderr:
            return False
    return True


def _reset_for_tests() -> None:
    """Remove handlers installed by :func:`ensure_app_logging`."""

    global _CONFIGURED, _LOG_PATH, _FILE_HANDLER, _STREAM_HANDLER, _CURRENT_VERBOSITY

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    _CONFIGURED = False
    _LOG_PATH = None
    _FILE_HANDLER = None
    _STREAM_HANDLER = None
    _CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


__all__ = [
    "LogVerbosity",
    "USER_HOME_PLACEHOLDER",
    "USER_PLACEHOLDER",
    "ensure_app_logging",
    "get_file_log_verbosity",
    "set_file_log_verbosity",
]
