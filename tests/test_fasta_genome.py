from pathlib import Path

import pysam
import pytest

from refgenome.config import GenomeConfig
from refgenome.dictionary import SequenceDictionary, SequenceRecord
from refgenome.errors import (
    ConfigurationError,
    FastaDictionaryMissing,
    FastaIndexMissing,
    GenomeClosedError,
)
from refgenome.fasta import FlatFileBackend, FlatFileGenome, PysamFastaReader
from refgenome.genome import GenomeHandle, open_genome
from refgenome.types import FastaReaderLike

CHR1 = "ACGTTGCA" * 40 + "NNAC"   # 324 bp
CHR2 = "GATTACA" * 3               # 21 bp


def _write_indexed_fasta(tmp_path: Path) -> Path:
    fa = tmp_path / "genome.fa"
    lines = [">chr1"]
    lines += [CHR1[i:i + 60] for i in range(0, len(CHR1), 60)]
    lines += [">chr2 second contig", CHR2]
    fa.write_text("\n".join(lines) + "\n", encoding="ascii")
    pysam.faidx(str(fa))
    return fa


class FakeReader:
    """1-based inclusive reader over in-memory contigs, counting calls."""

    def __init__(self, contigs):
        self.contigs = contigs
        self.calls = []
        self.closed = 0

    def get_dictionary(self):
        if not self.contigs:
            return None
        return SequenceDictionary((k, len(v)) for k, v in self.contigs.items())

    def get_subsequence(self, contig, start, end):
        self.calls.append((contig, start, end))
        return self.contigs[contig][start - 1:end].encode("ascii")

    def close(self):
        self.closed += 1


def test_fake_reader_matches_protocol():
    assert isinstance(FakeReader({}), FastaReaderLike)


def test_backend_converts_to_one_based_inclusive():
    reader = FakeReader({"chr1": CHR1})
    backend = FlatFileBackend(reader, "chr1", len(CHR1))

    assert backend.refill(0, 8) == CHR1[0:8].encode("ascii")
    assert backend.refill(320, 400) == CHR1[320:].encode("ascii")
    assert reader.calls == [("chr1", 1, 8), ("chr1", 321, len(CHR1))]


def test_dictionary_from_fai(tmp_path):
    fa = _write_indexed_fasta(tmp_path)
    with FlatFileGenome(fa) as genome:
        d = genome.get_dictionary()
        assert d.names == ["chr1", "chr2"]
        assert [r.length for r in d] == [len(CHR1), len(CHR2)]
        assert "chr2" in genome
        assert "chr3" not in genome
        assert genome.source == str(fa)


def test_reads_match_fasta(tmp_path):
    fa = _write_indexed_fasta(tmp_path)
    cfg = GenomeConfig(half_window=16)
    with FlatFileGenome(fa, config=cfg) as genome:
        chr1 = genome.get_contig("chr1")
        assert chr1.length == len(CHR1)
        assert "".join(chr1.character_at(i) for i in range(len(CHR1))) == CHR1
        assert chr1[-4:] == "NNAC"

        chr2 = genome.get_contig("chr2")
        assert chr2.fetch(0, len(CHR2)) == CHR2


def test_same_name_returns_cached_instance():
    reader = FakeReader({"chr1": CHR1, "chr2": CHR2})
    genome = FlatFileGenome("fake.fa", reader=reader)

    first = genome.get_contig("chr1")
    first.character_at(3)
    second = genome.get_contig("chr1")
    assert second is first
    # the warm window survived the second lookup
    second.character_at(4)
    assert len(reader.calls) == 1


def test_different_name_replaces_cache():
    reader = FakeReader({"chr1": CHR1, "chr2": CHR2})
    genome = FlatFileGenome("fake.fa", reader=reader)

    chr1 = genome.get_contig("chr1")
    chr2 = genome.get_contig("chr2")
    assert chr2 is not chr1
    assert genome.get_contig("chr2") is chr2
    assert genome.get_contig("chr1") is not chr1


def test_unknown_contig_is_none_and_keeps_cache():
    reader = FakeReader({"chr1": CHR1})
    genome = FlatFileGenome("fake.fa", reader=reader)

    chr1 = genome.get_contig("chr1")
    assert genome.get_contig("chrUn") is None
    assert genome.get_contig("chr1") is chr1


def test_close_is_idempotent_and_final():
    reader = FakeReader({"chr1": CHR1})
    genome = FlatFileGenome("fake.fa", reader=reader)
    genome.get_contig("chr1")

    genome.close()
    genome.close()
    assert reader.closed == 1
    assert genome.closed
    with pytest.raises(GenomeClosedError):
        genome.get_contig("chr1")
    with pytest.raises(GenomeClosedError):
        genome.get_dictionary()


def test_missing_dictionary_is_fatal():
    reader = FakeReader({})
    with pytest.raises(FastaDictionaryMissing):
        FlatFileGenome("empty.fa", reader=reader)
    assert reader.closed == 1


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        PysamFastaReader(tmp_path / "nope.fa")


def test_reader_errors_propagate(tmp_path):
    fa = _write_indexed_fasta(tmp_path)
    reader = PysamFastaReader(fa)
    backend = FlatFileBackend(reader, "chrX", 100)
    with pytest.raises((KeyError, ValueError, OSError)):
        backend.refill(0, 10)
    reader.close()


def test_open_genome_dispatches_paths_to_fasta(tmp_path):
    fa = _write_indexed_fasta(tmp_path)
    with open_genome(str(fa)) as genome:
        assert isinstance(genome, FlatFileGenome)
        assert genome.get_contig("chr2")[0:7] == "GATTACA"


def test_unindexed_fasta_is_a_configuration_error(tmp_path):
    fa = tmp_path / "noindex.fa"
    fa.write_text(">chr1\nACGTACGT\n", encoding="ascii")

    with pytest.raises(FastaIndexMissing) as info:
        FlatFileGenome(fa)
    assert isinstance(info.value, ConfigurationError)
    assert "samtools faidx" in str(info.value)
    # nothing was written next to the user's FASTA
    assert not (tmp_path / "noindex.fa.fai").exists()


def test_unindexed_fasta_through_open_genome(tmp_path):
    fa = tmp_path / "noindex.fa"
    fa.write_text(">chr1\nACGTACGT\n", encoding="ascii")

    with pytest.raises(ConfigurationError):
        open_genome(str(fa))
    assert not (tmp_path / "noindex.fa.fai").exists()


def test_reader_closed_when_dictionary_fails():
    class BrokenIndex(FakeReader):
        def get_dictionary(self):
            raise OSError("truncated .fai")

    reader = BrokenIndex({"chr1": CHR1})
    with pytest.raises(OSError, match="truncated"):
        FlatFileGenome("broken.fa", reader=reader)
    assert reader.closed == 1


def test_contig_keeps_its_dictionary_record():
    reader = FakeReader({"chr1": CHR1, "chr2": CHR2})
    genome = FlatFileGenome("fake.fa", reader=reader)

    chr2 = genome.get_contig("chr2")
    assert chr2.record == SequenceRecord("chr2", len(CHR2), 1)
    assert chr2.record is genome.get_dictionary().get("chr2")


def test_base_handle_starts_with_empty_dictionary():
    handle = GenomeHandle("nowhere")
    assert len(handle.get_dictionary()) == 0
    assert handle.get_contig("chr1") is None
