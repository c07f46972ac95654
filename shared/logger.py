"""
StoreNet Structured Logger
===========================

Provides :class:`StoreNetLogger`, a small facade over the stdlib
:mod:`logging` module that writes colourised Rich output to stderr and,
optionally, plain or JSON-lines records to a rotating log file.

Graph mutations are logged through :meth:`StoreNetLogger.mutation`, a
scope that stamps every record inside it with the mutation name and the
device or port ids it touches, then reports how long the mutation took
to settle or why it was rejected.  Pipeline stages use
:meth:`StoreNetLogger.timed`.

JSON record layout::

    {
      "timestamp": "2026-10-18T09:14:03.512+00:00",
      "level": "WARNING",
      "logger": "storenet.engine",
      "message": "connect rejected: Cannot connect power cable to data port.",
      "mutation": "connect",
      "subjects": ["zyxel-router-1-lan2", "power-outlet-1-outlet3"]
    }

References:
    - Python logging HOWTO. https://docs.python.org/3/howto/logging.html
    - Rich library. https://github.com/Textualize/rich
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

if TYPE_CHECKING:
    from shared.config import StoreNetConfig

_LOG_THEME = Theme(
    {
        "log.level.debug": "dim cyan",
        "log.level.info": "bold bright_blue",
        "log.level.warning": "bold yellow",
        "log.level.error": "bold red",
    }
)

_PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(mutation_tag)s%(message)s"


# ========================== Formatters =====================================


class _JSONFormatter(logging.Formatter):
    """One JSON object per record; mutation fields only when bound."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        mutation = getattr(record, "mutation", None)
        if mutation:
            entry["mutation"] = mutation
            entry["subjects"] = list(getattr(record, "subjects", ()))
        if record.exc_info and record.exc_info[1] is not None:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class _PlainFormatter(logging.Formatter):
    """Text lines prefixed with ``[mutation subject,...]`` when bound."""

    def __init__(self) -> None:
        super().__init__(fmt=_PLAIN_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        mutation = getattr(record, "mutation", None)
        if mutation:
            subjects = ",".join(getattr(record, "subjects", ()))
            record.mutation_tag = f"[{mutation} {subjects}] " if subjects else f"[{mutation}] "
        else:
            record.mutation_tag = ""
        return super().format(record)


def _console_handler(level: int) -> RichHandler:
    return RichHandler(
        console=Console(theme=_LOG_THEME, stderr=True),
        level=level,
        show_path=False,
        show_time=True,
        rich_tracebacks=True,
        markup=False,
    )


# ========================== StoreNetLogger =================================


class StoreNetLogger:
    """Logger for one StoreNet component (``storenet.<component>``).

    Usage::

        log = StoreNetLogger.from_config("engine", config, verbose=True)
        with log.mutation("connect", "zyxel-router-1-lan1", "pos-1-eth"):
            graph.connect(...)

    Args:
        component:       Suffix of the ``storenet.`` logger namespace.
        log_level:       Minimum severity name.
        log_file:        Rotating log file path; ``None`` disables it.
        json_logs:       Write JSON lines instead of text to the file.
        console_output:  Attach the Rich stderr handler.
    """

    def __init__(
        self,
        component: str,
        *,
        log_level: str = "INFO",
        log_file: str | Path | None = None,
        json_logs: bool = False,
        console_output: bool = True,
    ) -> None:
        self._mutation: str | None = None
        self._subjects: tuple[str, ...] = ()

        level = getattr(logging, log_level.upper(), logging.INFO)
        self._logger = logging.getLogger(f"storenet.{component}")
        self._logger.setLevel(level)
        self._logger.propagate = False
        # Re-instantiation must not stack handlers
        self._logger.handlers.clear()

        if console_output:
            self._logger.addHandler(_console_handler(level))

        if log_file:
            file_path = Path(log_file)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(
                filename=str(file_path),
                maxBytes=10_485_760,
                backupCount=5,
                encoding="utf-8",
            )
            fh.setLevel(level)
            fh.setFormatter(_JSONFormatter() if json_logs else _PlainFormatter())
            self._logger.addHandler(fh)

    @classmethod
    def from_config(
        cls, component: str, config: StoreNetConfig, *, verbose: bool = False
    ) -> StoreNetLogger:
        """Build a logger from the ``[global]`` config section.

        *verbose* forces DEBUG regardless of the configured level.
        """
        settings = config.global_settings
        return cls(
            component,
            log_level="DEBUG" if verbose else settings.log_level,
            log_file=settings.log_file or None,
            json_logs=settings.log_json,
        )

    # ------------------------------------------------------------------ #
    #  Mutation scope
    # ------------------------------------------------------------------ #

    class _MutationScope:
        """Binds a mutation name and subject ids; logs the outcome on exit."""

        def __init__(self, log: StoreNetLogger, name: str, subjects: tuple[str, ...]) -> None:
            self._log = log
            self._name = name
            self._subjects = subjects
            self._outer: tuple[str | None, tuple[str, ...]] = (None, ())
            self._start = 0.0

        def __enter__(self) -> StoreNetLogger._MutationScope:
            self._outer = (self._log._mutation, self._log._subjects)
            self._log._mutation = self._name
            self._log._subjects = self._subjects
            self._start = time.perf_counter()
            return self

        def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
            try:
                if exc is None:
                    self._log.debug(
                        "%s settled in %.3f ms",
                        self._name,
                        (time.perf_counter() - self._start) * 1000.0,
                    )
                elif hasattr(exc, "reason"):
                    self._log.warning("%s rejected: %s", self._name, exc.reason)
            finally:
                self._log._mutation, self._log._subjects = self._outer

    def mutation(self, name: str, *subjects: str) -> _MutationScope:
        """Scope a graph mutation touching the device or port ids *subjects*.

        Records inside carry ``mutation`` and ``subjects``.  On a clean exit
        the settle time is logged at DEBUG; an exception carrying a
        ``reason`` (a rejected operation) is logged at WARNING and
        re-raised.
        """
        return self._MutationScope(self, name, tuple(subjects))

    # ------------------------------------------------------------------ #
    #  Log methods
    # ------------------------------------------------------------------ #

    def _extra(self) -> dict[str, Any]:
        return {"mutation": self._mutation, "subjects": self._subjects}

    def debug(self, msg: str, *args: Any) -> None:
        self._logger.debug(msg, *args, extra=self._extra())

    def info(self, msg: str, *args: Any) -> None:
        self._logger.info(msg, *args, extra=self._extra())

    def warning(self, msg: str, *args: Any) -> None:
        self._logger.warning(msg, *args, extra=self._extra())

    # ------------------------------------------------------------------ #
    #  Timing helper
    # ------------------------------------------------------------------ #

    class _TimingContext:
        def __init__(self, log: StoreNetLogger, label: str) -> None:
            self._log = log
            self._label = label
            self._start = 0.0

        def __enter__(self) -> StoreNetLogger._TimingContext:
            self._start = time.perf_counter()
            return self

        def __exit__(self, *exc: Any) -> None:
            self._log.debug("Completed: %s (%.3f ms)", self._label, self.elapsed * 1000.0)

        @property
        def elapsed(self) -> float:
            """Seconds since the block was entered."""
            return time.perf_counter() - self._start

    def timed(self, label: str) -> _TimingContext:
        """Context manager that logs the elapsed time of a block at DEBUG."""
        return self._TimingContext(self, label)
