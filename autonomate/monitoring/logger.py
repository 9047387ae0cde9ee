"""
Logging for AutonomateQA.

Every record emitted while a run is active carries that run's id (and the
current step number once the step loop starts), whether or not the caller
passed them explicitly. Output is sanitized before it reaches any handler.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler

from autonomate.config.settings import Settings, get_settings
from autonomate.security.sanitizer import DataSanitizer

RUN_FIELDS = ("run_id", "step_number")
CONTEXT_FIELDS = RUN_FIELDS + ("component", "model", "action_kind", "metric_name", "value", "unit")

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("openai", "httpx", "httpcore", "google_genai", "asyncio")

FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(run_id)s] %(name)s: %(message)s"

_active_run: ContextVar[Optional[str]] = ContextVar("autonomate_run_id", default=None)
_active_step: ContextVar[Optional[int]] = ContextVar("autonomate_step_number", default=None)


@contextmanager
def bind_run(run_id: str) -> Iterator[None]:
    """Attach ``run_id`` to every record logged inside the block."""
    run_token = _active_run.set(run_id)
    step_token = _active_step.set(None)
    try:
        yield
    finally:
        _active_step.reset(step_token)
        _active_run.reset(run_token)


def set_step(step_number: Optional[int]) -> None:
    """Record the step currently executing in the bound run."""
    _active_step.set(step_number)


class RunContextFilter(logging.Filter):
    """Fills ``run_id``/``step_number`` from the bound run when absent."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "run_id", None) is None:
            record.run_id = _active_run.get() or "-"
        if getattr(record, "step_number", None) is None:
            step = _active_step.get()
            if step is not None:
                record.step_number = step
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, sanitized unless disabled."""

    def __init__(self, *args, sanitize: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.sanitizer = DataSanitizer() if sanitize else None

    def format(self, record: logging.LogRecord) -> str:
        if self.sanitizer:
            record = self.sanitizer.sanitize_log_record(record)

        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update(
            {
                name: getattr(record, name)
                for name in CONTEXT_FIELDS
                if getattr(record, name, None) not in (None, "-")
            }
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        if self.sanitizer:
            payload = self.sanitizer.sanitize_dict(payload)
        return json.dumps(payload, default=str)


class SanitizingHandler(logging.Handler):
    """Sanitizes records, then hands them to the wrapped handler."""

    def __init__(self, handler: logging.Handler, sanitizer: Optional[DataSanitizer] = None):
        super().__init__(level=handler.level)
        self.handler = handler
        self.sanitizer = sanitizer or DataSanitizer()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.handler.emit(self.sanitizer.sanitize_log_record(record))
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        self.handler.flush()

    def close(self) -> None:
        self.handler.close()
        super().close()


class ContextLogAdapter(logging.LoggerAdapter):
    """Merges fixed context (run id, component, model) into each record's extras."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return msg, kwargs


def _console_handler(log_format: str, sanitize: bool) -> logging.Handler:
    if log_format == "json":
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter(sanitize=sanitize))
        return handler

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
    )
    return SanitizingHandler(handler) if sanitize else handler


def _file_handler(path: str, log_format: str, sanitize: bool) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    if log_format == "json":
        handler.setFormatter(JSONFormatter(sanitize=sanitize))
        return handler

    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return SanitizingHandler(handler) if sanitize else handler


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
    sanitize_logs: bool = True,
    settings: Optional[Settings] = None,
) -> logging.Logger:
    """
    Configure the root logger for a CLI invocation.

    Explicit arguments win over the settings values.

    Args:
        log_level: Level name such as ``INFO``
        log_format: ``json`` (stdout) or ``text`` (rich console on stderr)
        log_file: Optional file that receives the same records
        sanitize_logs: Mask credentials and PII before output
        settings: Settings instance (defaults to cached settings)

    Returns:
        The root logger
    """
    settings = settings or get_settings()
    level = (log_level or settings.log_level).upper()
    format_type = log_format or settings.log_format
    file_path = log_file or settings.log_file

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
        existing.close()

    handlers = [_console_handler(format_type, sanitize_logs)]
    if file_path:
        handlers.append(_file_handler(str(file_path), format_type, sanitize_logs))

    context_filter = RunContextFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("autonomate").debug(
        f"Logging configured: level={level} format={format_type} file={file_path or '-'}"
    )
    return root_logger


def get_logger(name: str, **context: Any) -> logging.Logger:
    """
    Return a logger, wrapped in a ContextLogAdapter when context is given.

    Names are relative to the ``autonomate`` namespace, e.g.
    ``get_logger("browser.executor")``.
    """
    logger = logging.getLogger(name if name.startswith("autonomate") else f"autonomate.{name}")
    if context:
        return ContextLogAdapter(logger, context)
    return logger


def log_performance_metric(
    metric_name: str,
    value: float,
    unit: str = "ms",
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """Log a named measurement (model call latency, action time, run duration)."""
    extra = dict(context or {})
    extra.update(metric_name=metric_name, value=value, unit=unit)
    logging.getLogger("autonomate.performance").info(
        f"Performance metric: {metric_name}={value}{unit}", extra=extra
    )
