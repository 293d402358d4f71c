import copy
import sys

from .. import __version__


def get_header_dict(alignment_file):
    """Convert the header of an open pysam AlignmentFile into a dict.

    Example of the returned dict:
    {
        'HD': {'VN': '1.6', 'SO': 'coordinate'},
        'SQ': [{'SN': 'chr1', 'LN': 248956422},
               {'SN': 'chr2', 'LN': 242193529}],
        'PG': [{'ID': 'bwa', 'PN': 'bwa', 'VN': '0.7.17-r1188'}]
    }
    """
    return alignment_file.header.to_dict()


def get_pg_chain_ends(pg_records):
    """IDs of @PG records that no other @PG refers to via PP, in file order."""
    parents = {pg.get("PP") for pg in pg_records}
    return [pg["ID"] for pg in pg_records if "ID" in pg and pg["ID"] not in parents]


def _unique_pg_id(ID, pg_records):
    existing = {pg.get("ID") for pg in pg_records}
    if ID not in existing:
        return ID
    i = 1
    while f"{ID}-{i}" in existing:
        i += 1
    return f"{ID}-{i}"


def append_new_pg(header, ID="", PN="", VN=None, CL=None):
    """Append a @PG record to a SAM header dict.

    The new record is chained (PP) to the end of the last @PG chain of the
    header. If a record with the same ID already exists, a numerical suffix
    is added to the ID.

    Parameters
    ----------
    header : dict
        SAM header, as returned by pysam.AlignmentHeader.to_dict().
    ID, PN, VN, CL : str
        The keys of a new @PG record. If absent, VN is the version of
        bamdemux and CL is taken from sys.argv.

    Returns
    -------
    new_header : dict
    """
    if VN is None:
        VN = __version__
    if CL is None:
        CL = " ".join(sys.argv)

    new_header = copy.deepcopy(header)
    pg_records = new_header.get("PG", [])

    new_pg = {"ID": _unique_pg_id(ID, pg_records), "PN": PN}
    chain_ends = get_pg_chain_ends(pg_records)
    if chain_ends:
        new_pg["PP"] = chain_ends[-1]
    new_pg["VN"] = VN
    new_pg["CL"] = CL

    new_header["PG"] = pg_records + [new_pg]
    return new_header
