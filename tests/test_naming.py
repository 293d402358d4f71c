# -*- coding: utf-8 -*-
import time

import pytest

from bamdemux.lib.keys import PartitionKey, SplitMode
from bamdemux.lib.naming import (
    OutputNamingPolicy,
    get_timestamp_string,
    remove_filename_extension,
    resolve_output_stub,
)


def test_boolean_names():
    mapped = OutputNamingPolicy("out/sample", SplitMode.MAPPED)
    assert mapped(PartitionKey.boolean(True)) == "out/sample.MAPPED.bam"
    assert mapped(PartitionKey.boolean(False)) == "out/sample.UNMAPPED.bam"

    paired = OutputNamingPolicy("sample", SplitMode.PAIRED)
    assert paired(PartitionKey.boolean(True)) == "sample.PAIRED_END.bam"
    assert paired(PartitionKey.boolean(False)) == "sample.SINGLE_END.bam"

    with pytest.raises(ValueError):
        mapped(PartitionKey.signed(1))


def test_reference_names():
    naming = OutputNamingPolicy(
        "sample", SplitMode.REFERENCE, references=("chr1", "chr2", "chr3")
    )
    assert naming(PartitionKey.signed(0)) == "sample.REF_chr1.bam"
    assert naming(PartitionKey.signed(2)) == "sample.REF_chr3.bam"
    assert naming(PartitionKey.signed(-1)) == "sample.REF_unmapped.bam"
    with pytest.raises(ValueError):
        naming(PartitionKey.signed(3))


def test_tag_names():
    naming = OutputNamingPolicy("sample", SplitMode.TAG, tag="RG")
    assert naming(PartitionKey.string("grp1")) == "sample.TAG_RG_grp1.bam"
    assert naming(PartitionKey.signed(-2)) == "sample.TAG_RG_-2.bam"
    assert naming(PartitionKey.unsigned(3000000000)) == "sample.TAG_RG_3000000000.bam"
    assert naming(PartitionKey.real(1.25)) == "sample.TAG_RG_1.25.bam"


def test_naming_is_pure():
    naming = OutputNamingPolicy("sample", SplitMode.TAG, tag="XF")
    key = PartitionKey.real(0.1)
    assert naming(key) == naming(key) == naming(PartitionKey.real(0.1))
    assert OutputNamingPolicy("sample", SplitMode.TAG, tag="XF")(key) == naming(key)


def test_distinct_real_keys_get_distinct_names():
    naming = OutputNamingPolicy("s", SplitMode.TAG, tag="XF")
    keys = [PartitionKey.real(v) for v in (1.0, 1.0000001, 0.0, -0.0, 1e-8)]
    assert len({naming(k) for k in keys}) == len(set(keys)) == 5


def test_remove_filename_extension():
    assert remove_filename_extension("/path/to/file.bam") == "/path/to/file"
    assert remove_filename_extension("file.sorted.bam") == "file.sorted"
    assert remove_filename_extension("/path.d/file") == "/path.d/file"


def test_resolve_output_stub():
    assert resolve_output_stub("in.bam", stub="custom") == "custom"
    assert resolve_output_stub("data/in.bam") == "data/in"
    now = time.mktime((2010, 9, 19, 12, 30, 0, 0, 0, -1))
    assert resolve_output_stub(None, now=now) == get_timestamp_string(now)
    assert resolve_output_stub("-", now=now) == get_timestamp_string(now)


def test_timestamp_has_no_whitespace():
    stamp = get_timestamp_string()
    assert stamp
    assert " " not in stamp
    assert "\n" not in stamp
