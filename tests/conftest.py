# -*- coding: utf-8 -*-
import pysam
import pytest

REFERENCES = ["chr1", "chr2", "chr3"]


@pytest.fixture
def header():
    return pysam.AlignmentHeader.from_dict(
        {
            "HD": {"VN": "1.6", "SO": "unsorted"},
            "SQ": [{"SN": name, "LN": 1000} for name in REFERENCES],
        }
    )


@pytest.fixture
def make_read(header):
    """Factory of in-memory alignments.

    tags is a list of (tag, value) or (tag, value, value_type) tuples.
    """

    def _make_read(name, flag=0, ref_id=0, pos=100, tags=()):
        read = pysam.AlignedSegment(header)
        read.query_name = name
        read.flag = flag
        read.reference_id = ref_id
        read.reference_start = pos if ref_id >= 0 else -1
        read.mapping_quality = 0 if flag & 4 else 60
        if not flag & 4:
            read.cigarstring = "10M"
        read.query_sequence = "ACGTACGTAC"
        read.query_qualities = pysam.qualitystring_to_array("IIIIIIIIII")
        read.next_reference_id = -1
        read.next_reference_start = -1
        for tag in tags:
            read.set_tag(*tag)
        return read

    return _make_read


@pytest.fixture
def write_bam(header, tmp_path):
    """Write alignments into a BAM file inside tmp_path, return its path."""

    def _write_bam(reads, name="input.bam"):
        path = str(tmp_path / name)
        with pysam.AlignmentFile(path, "wb", header=header) as out:
            for read in reads:
                out.write(read)
        return path

    return _write_bam


def _read_names(path):
    with pysam.AlignmentFile(path, "rb", check_sq=False) as f:
        return [read.query_name for read in f]


@pytest.fixture
def read_names():
    """Names of the alignments stored in a SAM/BAM file, in file order."""
    return _read_names
