# src/refgenome/errors.py
from __future__ import annotations


class RefGenomeError(Exception):
    """Base class for every error raised by refgenome."""


class ConfigurationError(RefGenomeError, ValueError):
    """
    The genome cannot be opened as configured.

    Raised at open time; no partially built genome is ever returned.
    """


class FastaIndexMissing(ConfigurationError):
    def __init__(self, path) -> None:
        super().__init__(
            "cannot load the FASTA index (.fai) for %s; "
            "run `samtools faidx %s` first" % (path, path)
        )
        self.path = path


class FastaDictionaryMissing(ConfigurationError):
    def __init__(self, path) -> None:
        super().__init__("no sequence dictionary available for %s" % (path,))
        self.path = path


class OutOfRangeError(RefGenomeError, IndexError):
    """An offset outside [0, length) was requested from a contig."""


class BackendUnavailable(RefGenomeError, OSError):
    """
    I/O or transport failure while talking to a backend.

    The original exception is chained as ``__cause__``.
    """


class ProtocolError(RefGenomeError):
    """A remote response did not have the expected structure."""


class MetadataParseError(ProtocolError):
    """The entry_points document is missing required attributes."""


class EmptyDictionary(MetadataParseError):
    """The entry_points document did not list a single segment."""


class GenomeClosedError(RefGenomeError, ValueError):
    """Operation attempted on a genome after close()."""
