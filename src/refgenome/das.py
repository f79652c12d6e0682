# src/refgenome/das.py
from __future__ import annotations

import logging
from contextlib import closing
from typing import Iterable, Iterator, List, Optional, Tuple
from urllib.parse import quote_plus
from xml.parsers import expat

import requests

from .config import DEFAULT_CHUNK_SIZE, GenomeConfig
from .dictionary import SequenceDictionary, SequenceRecord
from .errors import (
    BackendUnavailable,
    EmptyDictionary,
    MetadataParseError,
    ProtocolError,
)
from .events import Characters, EndElement, Event, StartElement, iter_events
from .genome import GenomeHandle
from .types import Transport

LOG = logging.getLogger("refgenome.das")

SEGMENT = "SEGMENT"
DNA = "DNA"
ATT_ID = "id"
ATT_STOP = "stop"


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class HttpTransport:
    """
    Streams response bodies with a requests.Session.

    Any requests failure, including an HTTP error status or a connection
    dropped mid-body, surfaces as BackendUnavailable.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.chunk_size = chunk_size

    def open_stream(self, url: str) -> Iterator[bytes]:
        LOG.debug("GET %s", url)
        try:
            response = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.RequestException as err:
            raise BackendUnavailable("%s: %s" % (url, err)) from err
        try:
            response.raise_for_status()
        except requests.HTTPError as err:
            response.close()
            raise BackendUnavailable("%s: %s" % (url, err)) from err
        return self._iter_body(url, response)

    def _iter_body(self, url: str, response) -> Iterator[bytes]:
        try:
            yield from response.iter_content(chunk_size=self.chunk_size)
        except requests.RequestException as err:
            raise BackendUnavailable("%s: %s" % (url, err)) from err
        finally:
            response.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()


# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------

def normalize_base_url(url: str) -> str:
    return url if url.endswith("/") else url + "/"


def encode_segment_name(name: str) -> str:
    """
    Form-encode a contig name exactly like java.net.URLEncoder: spaces
    become '+', and only letters, digits and '.-*_' stay as they are.
    """
    return quote_plus(name, safe="*").replace("~", "%7E")


def entry_points_url(base_url: str) -> str:
    return normalize_base_url(base_url) + "entry_points"


def segment_url(base_url: str, name: str, start: int, end: int) -> str:
    """
    URL of the dna command for bases [start, end] (1-based, inclusive).
    """
    return "%sdna?segment=%s,%d,%d" % (
        normalize_base_url(base_url), encode_segment_name(name), start, end
    )


def _required_attribute(elem: StartElement, key: str, url: str) -> str:
    value = elem.attributes.get(key)
    if value is None:
        raise MetadataParseError(
            "%s: cannot get @%s of <%s>" % (url, key, elem.name)
        )
    return value


def parse_entry_points(events: Iterable[Event], url: str = "") -> List[Tuple[str, int]]:
    """
    Collect (id, stop) of every <SEGMENT> in an entry_points document.
    """
    entries: List[Tuple[str, int]] = []
    for evt in events:
        if not isinstance(evt, StartElement) or evt.name != SEGMENT:
            continue
        seg_id = _required_attribute(evt, ATT_ID, url)
        stop = _required_attribute(evt, ATT_STOP, url)
        try:
            length = int(stop)
        except ValueError:
            raise MetadataParseError(
                "%s: @stop=%r of segment %r is not an integer" % (url, stop, seg_id)
            ) from None
        entries.append((seg_id, length))
    if not entries:
        raise EmptyDictionary("%s: no <%s> found" % (url, SEGMENT))
    return entries


def parse_dna(events: Iterable[Event], url: str = "") -> bytes:
    """
    Return the whitespace-stripped text of the first <DNA> element.
    """
    it = iter(events)
    for evt in it:
        if isinstance(evt, StartElement) and evt.name == DNA:
            break
    else:
        raise ProtocolError("%s: no <%s> found" % (url, DNA))

    parts: List[str] = []
    for evt in it:
        if isinstance(evt, Characters):
            parts.append("".join(evt.data.split()))
        elif isinstance(evt, EndElement):
            try:
                return "".join(parts).encode("ascii")
            except UnicodeEncodeError as err:
                raise ProtocolError(
                    "%s: non-ASCII character in <%s>" % (url, DNA)
                ) from err
        else:
            raise ProtocolError(
                "%s: illegal <%s> inside <%s>" % (url, evt.name, DNA)
            )
    raise ProtocolError("%s: stream ended inside <%s>" % (url, DNA))


def _read_document(transport: Transport, url: str, parse):
    with closing(transport.open_stream(url)) as chunks:
        try:
            return parse(iter_events(chunks), url)
        except expat.ExpatError as err:
            raise ProtocolError("%s: malformed XML: %s" % (url, err)) from err


# ---------------------------------------------------------------------------
# Backend + genome
# ---------------------------------------------------------------------------

class RemoteServiceBackend:
    """
    Refill strategy issuing one DAS dna request per window.
    """

    def __init__(
        self,
        transport: Transport,
        base_url: str,
        name: str,
        strict_length: bool = False,
    ) -> None:
        self.transport = transport
        self.base_url = normalize_base_url(base_url)
        self.name = name
        self.strict_length = strict_length

    def refill(self, start: int, end: int) -> bytes:
        url = segment_url(self.base_url, self.name, start + 1, end)
        bases = _read_document(self.transport, url, parse_dna)
        expected = end - start
        if len(bases) != expected:
            if self.strict_length:
                raise ProtocolError(
                    "%s: expected %d bases, got %d" % (url, expected, len(bases))
                )
            LOG.warning("%s: expected %d bases, got %d", url, expected, len(bases))
        return bases


class RemoteServiceGenome(GenomeHandle):
    """
    Genome served by a DAS server, e.g.
    http://genome.cse.ucsc.edu/cgi-bin/das/hg19/

    The dictionary is read once from the entry_points command; bases are
    fetched window by window with the dna command.
    """

    def __init__(
        self,
        base_url: str,
        config: Optional[GenomeConfig] = None,
        transport: Optional[Transport] = None,
    ) -> None:
        super().__init__(normalize_base_url(base_url), config=config)
        if transport is None:
            transport = HttpTransport(
                timeout=self.config.timeout, chunk_size=self.config.chunk_size
            )
        self._transport = transport
        url = entry_points_url(self.source)
        try:
            entries = _read_document(transport, url, parse_entry_points)
            try:
                self._dictionary = SequenceDictionary(entries)
            except ValueError as err:
                raise MetadataParseError("%s: %s" % (url, err)) from err
        except Exception:
            transport.close()
            raise
        LOG.info(
            "opened DAS genome %s (%d contigs)", self.source, len(self._dictionary)
        )

    def _make_backend(self, record: SequenceRecord) -> RemoteServiceBackend:
        return RemoteServiceBackend(
            self._transport,
            self.source,
            record.name,
            strict_length=self.config.strict_length,
        )

    def _release(self) -> None:
        self._transport.close()
