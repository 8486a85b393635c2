"""Opt-in loguru output for cartree.

cartree logs through loguru but stays silent until `enable_logging` is
called. Induction reports each accepted split at the custom `SPLIT` level,
which sits between DEBUG and INFO so that split-by-split tracing can be
switched on without the per-leaf DEBUG noise.

Note:
    Importing this module drops loguru's stock stderr sink (handler 0), so a
    record is never printed twice once `enable_logging` adds its own sink. If
    the host application has already removed that sink, nothing happens.
"""

from __future__ import annotations

import contextlib
import sys
import threading
import warnings
from typing import TYPE_CHECKING, ClassVar, Final, Literal

from loguru import logger

if TYPE_CHECKING:
    from types import TracebackType

    from loguru import Record

PACKAGE_NAME: Final[str] = __name__.split(".")[0]

SPLIT_LEVEL: Final[str] = "SPLIT"
SPLIT_LEVEL_NUMBER: Final[int] = 15

type LogLevel = Literal["TRACE", "DEBUG", "SPLIT", "INFO", "WARNING", "ERROR", "CRITICAL"]
type LogFormat = Literal["short", "full"]

_TIME_AND_LEVEL: Final[str] = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
_FORMATS: Final[dict[str, str]] = {
    "short": _TIME_AND_LEVEL + "<cyan>{function}</cyan> - <level>{message}</level> {extra}",
    "full": _TIME_AND_LEVEL
    + "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> {extra}",
}

with contextlib.suppress(ValueError):
    logger.remove(0)


def _register_split_level() -> None:
    """Add the `SPLIT` level to loguru, or warn if it exists under another number.

    loguru cannot renumber a level, so a conflicting registration made by
    someone else is reported rather than overwritten.
    """
    try:
        registered = logger.level(SPLIT_LEVEL)
    except ValueError:
        logger.level(SPLIT_LEVEL, no=SPLIT_LEVEL_NUMBER, icon="🌿")
        return

    if registered.no != SPLIT_LEVEL_NUMBER:
        warnings.warn(
            f"Log level {SPLIT_LEVEL} is registered as {registered.no}; cartree expects {SPLIT_LEVEL_NUMBER}",
            stacklevel=2,
        )


_register_split_level()


class LoggingHandle:
    """One stderr sink opened by `enable_logging`.

    Closing the handle, explicitly or by leaving its `with` block, removes
    the sink. cartree goes quiet again once every open handle is closed.

    Examples:
        >>> with enable_logging(level="SPLIT"):  # doctest: +SKIP
        ...     DecisionTree(dataset, ["petal_length"], "species").learn()
    """

    _active_ids: ClassVar[set[int]] = set()
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, handler_id: int) -> None:
        self.handler_id: int | None = handler_id
        with self._lock:
            self._active_ids.add(handler_id)

    def disable(self) -> None:
        """Remove this handle's sink; a second call does nothing."""
        with self._lock:
            handler_id, self.handler_id = self.handler_id, None
            if handler_id is None:
                return
            self._active_ids.discard(handler_id)
            with contextlib.suppress(ValueError):
                logger.remove(handler_id)
            if not self._active_ids:
                logger.disable(PACKAGE_NAME)

    def __enter__(self) -> LoggingHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.disable()

    @classmethod
    def get_active_handle_count(cls) -> int:
        """Return how many handles still hold a sink."""
        with cls._lock:
            return len(cls._active_ids)


def enable_logging(
    *,
    level: LogLevel = "INFO",
    log_format: LogFormat = "short",
) -> LoggingHandle:
    """Print cartree's log records to stderr until the returned handle is closed.

    Args:
        level (LogLevel): Lowest level shown. "INFO" (the default) covers
            dataset loading, the learned tree's shape, and evaluation results.
            "SPLIT" adds one record per accepted split, and "DEBUG" adds
            leaf creation.
        log_format (LogFormat): "short" prints the calling function only;
            "full" prints module, function, and line.

    Returns:
        LoggingHandle: The handle owning the new sink.
    """
    logger.enable(PACKAGE_NAME)
    handler_id = logger.add(
        sys.stderr,
        level=level,
        filter=_is_cartree_record,
        format=_FORMATS[log_format],
    )
    return LoggingHandle(handler_id)


def _is_cartree_record(record: Record) -> bool:
    """Return whether `record` was emitted from a cartree module."""
    name = record["name"]
    return name is not None and name.startswith(PACKAGE_NAME)
