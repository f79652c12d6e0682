from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class SequenceRecord:
    name: str
    length: int
    index: int = 0


class SequenceDictionary:
    """
    Ordered, read-only list of (contig name, length) pairs.

    Built once when a genome is opened. Lookups by name are O(1).
    """

    def __init__(self, entries: Iterable[Tuple[str, int]] = ()) -> None:
        records: List[SequenceRecord] = []
        by_name: Dict[str, SequenceRecord] = {}
        for name, length in entries:
            if name in by_name:
                raise ValueError("duplicate contig name %r" % (name,))
            length = int(length)
            if length < 0:
                raise ValueError(
                    "negative length %d for contig %r" % (length, name)
                )
            rec = SequenceRecord(name=name, length=length, index=len(records))
            records.append(rec)
            by_name[name] = rec
        self._records: Tuple[SequenceRecord, ...] = tuple(records)
        self._by_name = by_name

    def get(self, name: str) -> Optional[SequenceRecord]:
        return self._by_name.get(name)

    @property
    def names(self) -> List[str]:
        return [rec.name for rec in self._records]

    @property
    def total_length(self) -> int:
        return sum(rec.length for rec in self._records)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[SequenceRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> SequenceRecord:
        return self._records[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SequenceDictionary):
            return NotImplemented
        return self._records == other._records

    def __hash__(self) -> int:
        return hash(self._records)

    def __repr__(self) -> str:
        return "SequenceDictionary(%d contigs, %d bp)" % (
            len(self), self.total_length
        )
