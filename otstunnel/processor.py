"""Channel processors that run user callbacks and checkpoint periodically."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Sequence

from otstunnel.config import LOGGER_NAME, ChannelContext
from otstunnel.model import Record

DEFAULT_CHANNEL_SIZE = 10
DEFAULT_CHECKPOINT_INTERVAL = 10.0

ProcessFunc = Callable[[ChannelContext, Sequence[Record]], Any]
ShutdownFunc = Callable[[ChannelContext], Any]


class DefaultProcessor:
    """Runs a process callback per batch and saves the latest token every interval."""

    def __init__(
        self,
        context: ChannelContext,
        checkpointer: Any,
        process_func: ProcessFunc | None,
        shutdown_func: ShutdownFunc | None = None,
        interval: float = DEFAULT_CHECKPOINT_INTERVAL,
        logger: logging.Logger | None = None,
    ) -> None:
        self._context = context
        self._checkpointer = checkpointer
        self._process_func = process_func
        self._shutdown_func = shutdown_func
        self._interval = interval
        self._logger = logger or logging.getLogger(LOGGER_NAME)
        self._lock = threading.Lock()
        self._pending = ""
        self._closed = threading.Event()
        self._shutdown_lock = threading.Lock()
        self._shut_down = False
        self._thread = threading.Thread(target=self._checkpoint_loop, daemon=True)
        self._thread.start()

    def process(self, records: Sequence[Record], next_token: str, trace_id: str) -> None:
        """Hand non-empty ``records`` to the callback, then queue ``next_token``."""
        if records:
            ctx = replace(self._context, trace_id=trace_id, next_token=next_token)
            self._process_func(ctx, records)
        with self._lock:
            if not self._closed.is_set():
                self._pending = next_token

    def shutdown(self) -> None:
        """Flush the last token, stop checkpointing and run the shutdown callback once."""
        with self._shutdown_lock:
            if self._shut_down:
                return
            self._shut_down = True
            self._closed.set()
            self._thread.join()
            if self._shutdown_func is not None:
                self._shutdown_func(replace(self._context, trace_id="", next_token=""))

    def _take_pending(self) -> str:
        with self._lock:
            token, self._pending = self._pending, ""
        return token

    def _checkpoint_loop(self) -> None:
        while not self._closed.wait(self._interval):
            token = self._take_pending()
            if token:
                self._flush(token)
        token = self._take_pending()
        if token:
            self._flush(token)

    def _flush(self, token: str) -> None:
        try:
            self._checkpointer.checkpoint(token)
        except Exception as err:
            self._logger.error("make checkpoint failed: checkpoint=%s error=%s", token, err)
        else:
            self._logger.info(
                "checkpoint progress: context=%s checkpoint=%s", self._context, token
            )


@dataclass
class SimpleProcessFactory:
    """Builds DefaultProcessor instances from plain callbacks."""

    custom_value: Any = None
    cp_interval: float = 0.0
    process_func: ProcessFunc | None = None
    shutdown_func: ShutdownFunc | None = None
    logger: logging.Logger | None = None

    def new_processor(
        self, tunnel_id: str, client_id: str, channel_id: str, checkpointer: Any
    ) -> DefaultProcessor:
        interval = self.cp_interval if self.cp_interval > 0 else DEFAULT_CHECKPOINT_INTERVAL
        return DefaultProcessor(
            ChannelContext(tunnel_id, client_id, channel_id, custom_value=self.custom_value),
            checkpointer,
            self.process_func,
            self.shutdown_func,
            interval,
            self.logger,
        )