# src/refgenome/genome.py
from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

from .config import GenomeConfig
from .contig import WindowedContig
from .dictionary import SequenceDictionary, SequenceRecord
from .errors import GenomeClosedError
from .types import RefillStrategy

LOG = logging.getLogger("refgenome.genome")

URL_SCHEMES = ("http", "https", "ftp")


class GenomeHandle:
    """
    A genome opened from some source, handing out WindowedContig objects.

    Only the most recently requested contig is kept: asking for the same
    name again returns the very same object (and its warm window), asking
    for another name replaces it. Positional queries usually walk one
    contig at a time, so one entry is enough.

    Subclasses replace the empty self._dictionary in __init__ and implement
    _make_backend() and _release().
    """

    def __init__(self, source: str, config: Optional[GenomeConfig] = None) -> None:
        self._source = source
        self._config = config if config is not None else GenomeConfig()
        self._dictionary = SequenceDictionary()
        self._cached_contig: Optional[WindowedContig] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------
    def _make_backend(self, record: SequenceRecord) -> RefillStrategy:
        raise NotImplementedError

    def _release(self) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def source(self) -> str:
        return self._source

    @property
    def config(self) -> GenomeConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dictionary(self) -> SequenceDictionary:
        return self.get_dictionary()

    def get_dictionary(self) -> SequenceDictionary:
        self._check_open()
        return self._dictionary

    def get_contig(self, name: str) -> Optional[WindowedContig]:
        """
        Return the contig called `name`, or None if the genome has no such
        contig.
        """
        self._check_open()
        cached = self._cached_contig
        if cached is not None and cached.name == name:
            LOG.debug("contig cache hit: %s", name)
            return cached

        record = self.get_dictionary().get(name)
        if record is None:
            return None

        LOG.debug("contig cache miss: %s (%d bp)", name, record.length)
        contig = WindowedContig(
            name=record.name,
            length=record.length,
            backend=self._make_backend(record),
            half_window=self._config.half_window,
            record=record,
        )
        self._cached_contig = contig
        return contig

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._cached_contig = None
        self._release()
        LOG.info("closed genome %s", self._source)

    def _check_open(self) -> None:
        if self._closed:
            raise GenomeClosedError("genome %s is closed" % self._source)

    def __contains__(self, name: object) -> bool:
        return name in self.get_dictionary()

    def __enter__(self) -> "GenomeHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __str__(self) -> str:
        return self._source

    def __repr__(self) -> str:
        return "%s(%r)" % (type(self).__name__, self._source)


def is_url(locator: str) -> bool:
    return urlparse(locator).scheme.lower() in URL_SCHEMES


def open_genome(locator: str, config: Optional[GenomeConfig] = None) -> GenomeHandle:
    """
    Open a genome from a FASTA path or a DAS base URL.
    """
    # Imported here: both modules import GenomeHandle from this one.
    from .das import RemoteServiceGenome
    from .fasta import FlatFileGenome

    if is_url(locator):
        return RemoteServiceGenome(locator, config=config)
    return FlatFileGenome(locator, config=config)
