# -*- coding: utf-8 -*-
from bamdemux import __version__
from bamdemux.lib import headerops


def test_append_new_pg_to_empty_header():
    header = headerops.append_new_pg({}, ID="bamdemux_split", PN="bamdemux_split", CL="x")
    assert header["PG"] == [
        {"ID": "bamdemux_split", "PN": "bamdemux_split", "VN": __version__, "CL": "x"}
    ]


def test_append_new_pg_chains_to_last_pg():
    header = {
        "SQ": [{"SN": "chr1", "LN": 100}],
        "PG": [
            {"ID": "bwa", "PN": "bwa"},
            {"ID": "samtools", "PN": "samtools", "PP": "bwa"},
        ],
    }
    new_header = headerops.append_new_pg(header, ID="tool", PN="tool", VN="1", CL="c")
    assert new_header["PG"][-1] == {
        "ID": "tool",
        "PN": "tool",
        "PP": "samtools",
        "VN": "1",
        "CL": "c",
    }
    # the input header is left intact
    assert len(header["PG"]) == 2
    assert new_header["SQ"] == header["SQ"]


def test_append_new_pg_unique_id():
    header = {"PG": [{"ID": "tool", "PN": "tool"}, {"ID": "tool-1", "PP": "tool"}]}
    new_header = headerops.append_new_pg(header, ID="tool", PN="tool")
    assert new_header["PG"][-1]["ID"] == "tool-2"
    assert new_header["PG"][-1]["PP"] == "tool-1"


def test_get_pg_chain_ends():
    pgs = [
        {"ID": "a"},
        {"ID": "b", "PP": "a"},
        {"ID": "c"},
    ]
    assert headerops.get_pg_chain_ends(pgs) == ["b", "c"]
    assert headerops.get_pg_chain_ends([]) == []
