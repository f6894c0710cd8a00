"""The read-dispatch loop."""

from __future__ import annotations

import logging

from .config import EngineConfig
from .dispatcher import dispatch
from .errors import HandlerFault, SourceClosed
from .models import EngineState, EngineStats
from .registry import RuleRegistry
from .source import LineSource

logger = logging.getLogger(__name__)


class CueEngine:
    """Pull lines from the log, dispatch each one, repeat until stopped.

    Lines are dispatched strictly one at a time, so handlers run in the order
    their lines were appended. A failing handler is logged and skipped; a closed
    log source ends the loop with :class:`SourceClosed` after the file has been
    released.
    """

    def __init__(self, config: EngineConfig, registry: RuleRegistry) -> None:
        self.config = config
        self.registry = registry
        self.stats = EngineStats()
        self._state = EngineState.STARTING
        self._source: LineSource | None = None
        self._stop_requested = False
        self._running = False

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def stop(self) -> None:
        """Request shutdown.

        A blocked read is interrupted within one poll interval. A handler that
        is already running finishes first. Called before :meth:`run`, the next
        run returns right after opening the log. Must be called from the event
        loop running :meth:`run`.
        """
        self._stop_requested = True
        if self._source is not None:
            self._source.interrupt()

    async def run(self) -> None:
        """Run until :meth:`stop` is called or the log source closes."""
        if self._running:
            raise RuntimeError("CueEngine is already running")
        self._running = True
        self._state = EngineState.STARTING

        source = LineSource.from_config(self.config)
        try:
            await source.open()
            self._source = source
            logger.info("Watching %s with %d rule(s)", self.config.log_path, len(self.registry))
            if self._stop_requested:
                source.interrupt()
            await self._loop(source)
        finally:
            self._source = None
            await source.aclose()
            self._state = EngineState.STOPPED
            self._stop_requested = False
            self._running = False
            logger.info("Engine stopped")

    async def _loop(self, source: LineSource) -> None:
        while True:
            self._state = EngineState.READING
            try:
                line = await source.next_line()
            except SourceClosed:
                if self._stop_requested:
                    return
                self._state = EngineState.FAULTED
                logger.error("Log source closed: %s", self.config.log_path)
                raise

            self._state = EngineState.DISPATCHING
            self.stats.lines_read += 1
            try:
                outcome = await dispatch(line, self.registry.rules())
            except HandlerFault as fault:
                self.stats.handler_faults += 1
                logger.error(
                    "Handler error on event %s, continuing (line: %r)",
                    fault.rule_name,
                    fault.line,
                    exc_info=fault.__cause__,
                )
                continue

            if outcome.matched:
                self.stats.matched += 1
            else:
                self.stats.unmatched += 1
