# -*- coding: utf-8 -*-
import shutil
import sys

import pytest

from bamdemux.lib import fileio
from bamdemux.lib.errors import OpenError


def test_auto_open_plain_text(tmp_path):
    path = str(tmp_path / "stats.txt")
    f = fileio.auto_open(path)
    f.write("total\t3\n")
    f.close()
    with open(path) as f:
        assert f.read() == "total\t3\n"


def test_auto_open_stdout():
    assert fileio.auto_open("-") is sys.stdout


def test_compressor_is_picked_by_extension(monkeypatch):
    monkeypatch.setattr(
        shutil, "which", lambda tool: None if tool == "bgzip" else "/bin/" + tool
    )
    assert fileio.CommandFormatter("stats.gz", nproc=4).command == "gzip -c"
    assert fileio.CommandFormatter("stats.lz4").command == "lz4c -cz"
    assert fileio.CommandFormatter("stats.tsv").command is None


def test_missing_compressor(monkeypatch):
    monkeypatch.setattr(shutil, "which", lambda tool: None)
    with pytest.raises(ValueError, match="bgzip, gzip not found"):
        fileio.auto_open("stats.gz")


def test_open_missing_alignment_file(tmp_path):
    with pytest.raises(OpenError, match="missing.bam"):
        fileio.open_alignment_source(str(tmp_path / "missing.bam"))


def test_open_alignment_sink_in_missing_directory(tmp_path, header):
    with pytest.raises(OpenError, match="Could not open output file"):
        fileio.open_alignment_sink(str(tmp_path / "nodir" / "out.bam"), header)
