# src/refgenome/fasta.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import pysam

from .config import GenomeConfig
from .dictionary import SequenceDictionary, SequenceRecord
from .errors import FastaDictionaryMissing, FastaIndexMissing
from .genome import GenomeHandle
from .types import FastaReaderLike

LOG = logging.getLogger("refgenome.fasta")


class PysamFastaReader:
    """
    Tiny adapter around pysam.FastaFile exposing 1-based inclusive
    subsequence fetches and the contig dictionary from the .fai.
    """

    def __init__(self, fasta_path: Union[str, Path]) -> None:
        path = Path(fasta_path)
        if not path.is_file():
            raise FileNotFoundError("FASTA file not found: %s" % path)
        self.path = path
        # pysam would silently build a missing .fai next to the FASTA
        if not Path(str(path) + ".fai").is_file():
            raise FastaIndexMissing(path)
        try:
            self._fa = pysam.FastaFile(str(path))
        except (OSError, ValueError) as err:
            raise FastaIndexMissing(path) from err

    def get_dictionary(self) -> Optional[SequenceDictionary]:
        names = self._fa.references
        if not names:
            return None
        return SequenceDictionary(zip(names, self._fa.lengths))

    def get_subsequence(self, contig: str, start: int, end: int) -> bytes:
        """
        Return bases [start, end] (1-based, inclusive) of `contig`.
        """
        # pysam uses 0-based half-open intervals
        return self._fa.fetch(contig, start - 1, end).encode("ascii")

    def close(self) -> None:
        self._fa.close()

    def __enter__(self) -> "PysamFastaReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class FlatFileBackend:
    """
    Refill strategy reading one contig of an indexed FASTA.

    Reader errors are not caught here.
    """

    def __init__(self, reader: FastaReaderLike, name: str, length: int) -> None:
        self.reader = reader
        self.name = name
        self.length = length

    def refill(self, start: int, end: int) -> bytes:
        return self.reader.get_subsequence(
            self.name, start + 1, min(end, self.length)
        )


class FlatFileGenome(GenomeHandle):
    """
    Genome backed by a local FASTA file with its .fai index.

    A reader can be injected instead of a path-opened pysam file; it is
    then owned (and closed) by the genome all the same.
    """

    def __init__(
        self,
        fasta_path: Union[str, Path],
        config: Optional[GenomeConfig] = None,
        reader: Optional[FastaReaderLike] = None,
    ) -> None:
        super().__init__(str(fasta_path), config=config)
        self._reader = reader if reader is not None else PysamFastaReader(fasta_path)
        try:
            dictionary = self._reader.get_dictionary()
            if dictionary is None:
                raise FastaDictionaryMissing(fasta_path)
        except Exception:
            self._reader.close()
            raise
        self._dictionary = dictionary
        LOG.info("opened FASTA %s (%d contigs)", self.source, len(dictionary))

    def _make_backend(self, record: SequenceRecord) -> FlatFileBackend:
        return FlatFileBackend(self._reader, record.name, record.length)

    def _release(self) -> None:
        self._reader.close()
