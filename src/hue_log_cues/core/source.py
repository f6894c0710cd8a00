"""Tail-from-now line source for a live-appended log file.

Behaves like ``tail -f -n0``: only content appended after the file was opened
is delivered, one complete line at a time, in append order.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections import deque
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from pathlib import Path

import aiofiles
import aiofiles.os

from .config import EngineConfig, RotationPolicy
from .errors import SourceClosed, SourceUnavailable

logger = logging.getLogger(__name__)

# bytes from the start of the file compared on every poll to spot in-place rewrites
_HEAD_BYTES = 64


class LineSource:
    """Follow a growing file and hand out complete lines.

    Appended bytes are picked up by polling every ``poll_interval`` seconds; each
    poll drains everything written since the previous one, so nothing written
    between polls is lost. Bytes after the last newline stay buffered until the
    line is completed.

    ``rotation_policy`` decides what happens when the file is removed, replaced,
    truncated or rewritten in place: ``"fatal"`` raises :class:`SourceClosed`,
    ``"reopen"`` follows the path and reads the new file from its start. The file
    is checked before every read; an in-place rewrite is caught by comparing the
    first bytes already read with what the file holds now.

    A line longer than ``max_line_bytes`` is dropped whole, with a warning.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        poll_interval: float = 0.25,
        rotation_policy: RotationPolicy = "fatal",
        encoding: str = "utf-8",
        decode_errors: str = "replace",
        chunk_size: int = 64 * 1024,
        max_line_bytes: int = 1024 * 1024,
    ) -> None:
        self.path = Path(path)
        self.poll_interval = poll_interval
        self.rotation_policy = rotation_policy
        self.encoding = encoding
        self.decode_errors = decode_errors
        self.chunk_size = chunk_size
        self.max_line_bytes = max_line_bytes

        self._file = None
        self._inode: int | None = None
        self._offset = 0
        self._head = b""
        self._buffer = bytearray()
        self._discarding = False
        self._pending: deque[str] = deque()
        self._closed = asyncio.Event()
        self._interrupted = False
        self._failure: str | None = None

    @classmethod
    def from_config(cls, config: EngineConfig) -> LineSource:
        return cls(
            config.log_path,
            poll_interval=config.poll_interval,
            rotation_policy=config.rotation_policy,
            encoding=config.encoding,
            decode_errors=config.decode_errors,
            chunk_size=config.chunk_size,
            max_line_bytes=config.max_line_bytes,
        )

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def interrupted(self) -> bool:
        """True when the source was closed on request rather than by a failure."""
        return self._interrupted

    async def open(self) -> None:
        """Open the file positioned at its current end."""
        if not self.path.is_file():
            raise SourceUnavailable(f"Log file not found: {self.path}")
        try:
            await self._open_file(at_end=True)
        except OSError as exc:
            raise SourceUnavailable(f"Cannot open log file {self.path}: {exc}") from exc
        logger.info("Tailing %s from offset %d", self.path, self._offset)

    async def next_line(self) -> str:
        """Wait for the next complete line, without its line terminator."""
        while True:
            if self._closed.is_set():
                raise SourceClosed(self._failure or f"Log source closed: {self.path}")
            if self._pending:
                return self._pending.popleft()
            if not await self._read_available():
                await self._wait()

    def interrupt(self) -> None:
        """Wake a blocked :meth:`next_line`, which then raises SourceClosed."""
        self._interrupted = True
        self._closed.set()

    async def aclose(self) -> None:
        """Release the file. Safe to call more than once."""
        if not self._closed.is_set():
            self._interrupted = True
            self._closed.set()
        await self._release_file()

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            try:
                line = await self.next_line()
            except SourceClosed:
                if self._interrupted:
                    return
                raise
            yield line

    async def _open_file(self, *, at_end: bool) -> None:
        f = await aiofiles.open(self.path, mode="rb")
        try:
            self._inode = os.fstat(f.fileno()).st_ino
            self._offset = await f.seek(0, os.SEEK_END if at_end else os.SEEK_SET)
        except OSError:
            await f.close()
            raise
        self._file = f
        self._head = b""

    async def _release_file(self) -> None:
        f, self._file = self._file, None
        if f is not None:
            await f.close()
            logger.debug("Closed %s", self.path)

    async def _read_available(self) -> bool:
        """Read newly appended bytes; return False when there were none."""
        if self._file is None:
            if self.rotation_policy != "reopen":
                raise SourceClosed(f"Log source is not open: {self.path}")
            return await self._try_reopen()

        if await self._check_rotation():
            return self._file is not None

        try:
            data = await self._file.read(self.chunk_size)
        except OSError as exc:
            self._fail(f"Read failed on {self.path}: {exc}")
            raise SourceClosed(self._failure) from exc

        if not data:
            return False
        self._offset += len(data)
        self._feed(data)
        return True

    def _feed(self, data: bytes) -> None:
        *complete, rest = data.split(b"\n")
        if complete:
            complete[0] = bytes(self._buffer) + complete[0]
            self._buffer = bytearray()
            if self._discarding:
                # tail of a line that already overflowed
                del complete[0]
                self._discarding = False

        for raw in complete:
            if len(raw) > self.max_line_bytes:
                logger.warning("Dropping %d-byte line from %s", len(raw), self.path)
                continue
            line = raw.decode(self.encoding, errors=self.decode_errors)
            self._pending.append(line.rstrip("\r"))

        self._buffer.extend(rest)
        if len(self._buffer) > self.max_line_bytes:
            if not self._discarding:
                logger.warning(
                    "Line in %s exceeds %d bytes, dropping it", self.path, self.max_line_bytes
                )
            self._buffer.clear()
            self._discarding = True

    async def _check_rotation(self) -> bool:
        """Return True if the file was let go because it was rotated."""
        try:
            st = await aiofiles.os.stat(self.path)
        except FileNotFoundError:
            await self._rotated("Log file was removed")
            return True
        except OSError as exc:
            self._fail(f"Cannot stat {self.path}: {exc}")
            raise SourceClosed(self._failure) from exc

        if st.st_ino != self._inode:
            await self._rotated("Log file was replaced")
            return True
        if st.st_size < self._offset:
            await self._rotated("Log file was truncated")
            return True

        want = min(self._offset, _HEAD_BYTES)
        if not want:
            return False
        try:
            await self._file.seek(0)
            head = await self._file.read(want)
            await self._file.seek(self._offset)
        except OSError as exc:
            self._fail(f"Read failed on {self.path}: {exc}")
            raise SourceClosed(self._failure) from exc
        if head[: len(self._head)] != self._head:
            await self._rotated("Log file was rewritten")
            return True
        self._head = head
        return False

    async def _rotated(self, reason: str) -> None:
        if self.rotation_policy == "fatal":
            self._fail(f"{reason}: {self.path}")
            raise SourceClosed(self._failure)

        logger.warning("%s, reopening %s", reason, self.path)
        await self._release_file()
        self._buffer.clear()
        self._discarding = False
        await self._try_reopen()

    async def _try_reopen(self) -> bool:
        try:
            await self._open_file(at_end=False)
        except FileNotFoundError:
            logger.debug("Waiting for %s to reappear", self.path)
            return False
        except OSError as exc:
            self._fail(f"Cannot reopen {self.path}: {exc}")
            raise SourceClosed(self._failure) from exc
        logger.info("Reopened %s", self.path)
        return True

    def _fail(self, message: str) -> None:
        self._failure = message
        self._closed.set()

    async def _wait(self) -> None:
        with suppress(TimeoutError):
            await asyncio.wait_for(self._closed.wait(), timeout=self.poll_interval)


@asynccontextmanager
async def open_line_source(path: str | Path, **options) -> AsyncIterator[LineSource]:
    """Open a :class:`LineSource` and close it on every exit path."""
    source = LineSource(path, **options)
    await source.open()
    try:
        yield source
    finally:
        await source.aclose()
