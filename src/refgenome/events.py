from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, Iterator, Union
from xml.parsers import expat


@dataclass(frozen=True)
class StartElement:
    name: str
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Characters:
    data: str


@dataclass(frozen=True)
class EndElement:
    name: str


Event = Union[StartElement, Characters, EndElement]


def iter_events(chunks: Iterable[bytes]) -> Iterator[Event]:
    """
    Turn a stream of XML byte chunks into start/characters/end events.

    Events are produced lazily as chunks arrive, so a consumer can stop as
    soon as it has what it needs. Comments, processing instructions and the
    doctype are not reported. Adjacent character data inside one chunk is
    merged into a single Characters event, but a text run split across two
    chunks may come out as two events.

    Raises expat.ExpatError on malformed input.
    """
    pending: Deque[Event] = deque()

    parser = expat.ParserCreate()
    parser.buffer_text = True
    parser.StartElementHandler = lambda name, attrs: pending.append(
        StartElement(name, attrs)
    )
    parser.EndElementHandler = lambda name: pending.append(EndElement(name))
    parser.CharacterDataHandler = lambda data: pending.append(Characters(data))

    for chunk in chunks:
        if not chunk:
            continue
        parser.Parse(chunk, False)
        while pending:
            yield pending.popleft()
    parser.Parse(b"", True)
    while pending:
        yield pending.popleft()
