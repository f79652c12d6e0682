# src/refgenome/contig.py
from __future__ import annotations

import logging
from typing import Iterator, Optional, Union

from .config import DEFAULT_HALF_WINDOW
from .dictionary import SequenceRecord
from .errors import OutOfRangeError, ProtocolError
from .types import RefillStrategy

LOG = logging.getLogger("refgenome.contig")


class WindowedContig:
    """
    One contig, read through a sliding in-memory window.

    Random access by 0-based offset. When the requested offset is outside
    the current window, the window is replaced by up to 2 * half_window
    bases centred on that offset (clipped at both ends of the contig) in a
    single backend call. Sequential or local access therefore costs one
    backend round-trip per window rather than per base.

    The backend is any RefillStrategy; the contig never knows whether it
    reads a local FASTA or a remote service.

    Not thread-safe: the window is replaced in place on refill.
    """

    def __init__(
        self,
        name: str,
        length: int,
        backend: RefillStrategy,
        half_window: int = DEFAULT_HALF_WINDOW,
        record: Optional[SequenceRecord] = None,
    ) -> None:
        if length < 0:
            raise ValueError("negative contig length %d for %r" % (length, name))
        if half_window <= 0:
            raise ValueError("half_window must be positive, got %d" % half_window)
        self._name = name
        self._length = length
        self._backend = backend
        self._half_window = half_window
        self._record = record if record is not None else SequenceRecord(name, length)
        self._window: Optional[bytes] = None
        self._window_start = 0
        self._refills = 0

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    @property
    def name(self) -> str:
        return self._name

    @property
    def length(self) -> int:
        return self._length

    @property
    def half_window(self) -> int:
        return self._half_window

    @property
    def record(self) -> SequenceRecord:
        """The dictionary entry this contig was resolved from."""
        return self._record

    # ------------------------------------------------------------------
    # Window introspection
    # ------------------------------------------------------------------
    @property
    def window_start(self) -> Optional[int]:
        if self._window is None:
            return None
        return self._window_start

    @property
    def window_end(self) -> Optional[int]:
        if self._window is None:
            return None
        return self._window_start + len(self._window)

    @property
    def refill_count(self) -> int:
        return self._refills

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    def character_at(self, offset: int) -> str:
        """
        Return the base at 0-based `offset` as a one-character string.
        """
        if offset < 0 or offset >= self._length:
            raise OutOfRangeError(
                "offset %d outside %s:[0,%d)" % (offset, self._name, self._length)
            )
        window = self._window
        if window is not None:
            local = offset - self._window_start
            if 0 <= local < len(window):
                return chr(window[local])
        window = self._refill(offset)
        return chr(window[offset - self._window_start])

    def fetch(self, start: int, end: int) -> str:
        """
        Return the bases of [start, end) as a string.

        The range may span several windows; each missing window is pulled
        in turn.
        """
        if start < 0 or end > self._length or start > end:
            raise OutOfRangeError(
                "range [%d,%d) outside %s:[0,%d)"
                % (start, end, self._name, self._length)
            )
        parts = []
        pos = start
        while pos < end:
            window = self._window
            if window is None or not (
                self._window_start <= pos < self._window_start + len(window)
            ):
                window = self._refill(pos)
            local = pos - self._window_start
            stop = min(end - self._window_start, len(window))
            parts.append(window[local:stop])
            pos = self._window_start + stop
        return b"".join(parts).decode("ascii")

    def _refill(self, offset: int) -> bytes:
        new_start = max(0, offset - self._half_window)
        new_end = min(new_start + 2 * self._half_window, self._length)
        LOG.debug(
            "refill %s:[%d,%d) for offset %d", self._name, new_start, new_end, offset
        )
        window = bytes(self._backend.refill(new_start, new_end))
        self._refills += 1
        # One assignment each; a reader never sees a half-swapped window.
        self._window = window
        self._window_start = new_start
        if offset - new_start >= len(window):
            raise ProtocolError(
                "backend returned %d bases for %s:[%d,%d), offset %d not covered"
                % (len(window), self._name, new_start, new_end, offset)
            )
        return window

    # ------------------------------------------------------------------
    # Python sequence protocol
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return self._length

    def __getitem__(self, key: Union[int, slice]) -> str:
        if isinstance(key, slice):
            start, stop, step = key.indices(self._length)
            if step == 1:
                return self.fetch(start, max(start, stop))
            if step > 0:
                if stop <= start:
                    return ""
                return self.fetch(start, stop)[::step]
            if stop >= start:
                return ""
            return self.fetch(stop + 1, start + 1)[::-1][::-step]
        offset = key
        if offset < 0:
            offset += self._length
        return self.character_at(offset)

    def __iter__(self) -> Iterator[str]:
        for offset in range(self._length):
            yield self.character_at(offset)

    def __repr__(self) -> str:
        return "WindowedContig(%r, length=%d)" % (self._name, self._length)
