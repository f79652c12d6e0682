# src/refgenome/types.py
from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .dictionary import SequenceDictionary


@runtime_checkable
class RefillStrategy(Protocol):
    """
    Minimal interface a WindowedContig needs from its backend.

    Anything with a matching refill() is accepted, which is how the tests
    plug in counting fakes.
    """

    def refill(self, start: int, end: int) -> bytes:
        """
        Return the bases of [start, end) (0-based, half-open) as bytes.
        """
        ...


@runtime_checkable
class FastaReaderLike(Protocol):
    """
    Minimal interface we need from an indexed FASTA reader.

    Coordinates are 1-based and inclusive, like samtools regions.
    """

    def get_dictionary(self) -> Optional["SequenceDictionary"]:
        ...

    def get_subsequence(self, contig: str, start: int, end: int) -> bytes:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Transport(Protocol):
    """
    Byte-stream opener used by the DAS backend.

    The returned iterator must release the connection once exhausted or
    closed.
    """

    def open_stream(self, url: str) -> Iterator[bytes]:
        ...

    def close(self) -> None:
        ...
