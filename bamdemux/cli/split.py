#!/usr/bin/env python
# -*- coding: utf-8 -*-
import re
import shlex
import sys

import click

from ..lib import fileio
from ..lib.demux import DemuxEngine, SplitConfig
from ..lib.errors import NoModeSelected, OpenError, SplitError
from ..lib.keys import SplitMode
from . import cli, common_io_options

TAG_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]$")


def _validate_tag(ctx, param, value):
    if value is not None and not TAG_NAME_RE.match(value):
        raise click.BadParameter(f"{value!r} is not a valid two-letter SAM tag name")
    return value


@cli.command()
@click.argument("input_path", type=str, required=False)
@click.option(
    "--stub",
    type=str,
    default="",
    help="prefix of the output BAM files."
    " By default, the input path without its extension is used."
    " If the input is read from stdin, a timestamp is used.",
)
@click.option(
    "--mapped",
    is_flag=True,
    default=False,
    help="split mapped/unmapped alignments.",
)
@click.option(
    "--paired",
    is_flag=True,
    default=False,
    help="split single-end/paired-end alignments.",
)
@click.option(
    "--reference",
    is_flag=True,
    default=False,
    help="split alignments by reference.",
)
@click.option(
    "--tag",
    type=str,
    default=None,
    callback=_validate_tag,
    help="split alignments based on all values of TAG encountered"
    " (i.e. --tag RG creates a BAM file for each read group).",
)
@click.option(
    "--output-stats",
    type=str,
    default="",
    help="output file for split statistics."
    " If the path ends with .gz or .lz4, the output is bgzip-/lz4c-compressed."
    " If -, statistics are printed to stdout."
    " By default, statistics are not printed.",
)
@click.option(
    "--yaml/--no-yaml",
    default=False,
    help="Output stats in yaml format instead of table.",
)
@click.option(
    "--no-pg",
    is_flag=True,
    default=False,
    help="Do not add a @PG record to the headers of the output files.",
)
@common_io_options
def split(input_path, stub, mapped, paired, reference, tag, output_stats, **kwargs):
    """Split an alignment file into BAM files by a read property.

    Creates one BAM file per value of the property, named
    STUB.MAPPED.bam/STUB.UNMAPPED.bam, STUB.PAIRED_END.bam/STUB.SINGLE_END.bam,
    STUB.REF_<reference>.bam or STUB.TAG_<tag>_<value>.bam.
    Reads without the requested tag are dropped.

    INPUT_PATH : input SAM/BAM/CRAM file, the format is detected
    automatically. By default, the input is read from stdin.
    """
    try:
        split_py(
            input_path, stub, mapped, paired, reference, tag, output_stats, **kwargs
        )
    except SplitError as e:
        raise click.ClickException(str(e)) from e


def get_split_mode(mapped=False, paired=False, reference=False, tag=None):
    """Convert the split flags into a single SplitMode, None if none is set."""
    selected = [
        mode
        for mode, is_set in (
            (SplitMode.MAPPED, mapped),
            (SplitMode.PAIRED, paired),
            (SplitMode.REFERENCE, reference),
            (SplitMode.TAG, bool(tag)),
        )
        if is_set
    ]
    if len(selected) > 1:
        raise NoModeSelected(
            "Only one property can be given to split on, got: "
            + ", ".join(mode.value for mode in selected)
        )
    return selected[0] if selected else None


def split_py(
    input_path, stub, mapped, paired, reference, tag, output_stats, **kwargs
):
    config = SplitConfig(
        input_path=input_path,
        mode=get_split_mode(mapped, paired, reference, tag),
        tag=tag,
        stub=stub or None,
        nproc_in=kwargs.get("nproc_in", 1),
        nproc_out=kwargs.get("nproc_out", 1),
        add_pg=not kwargs.get("no_pg", False),
        command_line=" ".join(shlex.quote(arg) for arg in sys.argv),
    )

    # open the stats output first, a wrong path should fail before splitting
    out_stats_stream = None
    if output_stats:
        try:
            out_stats_stream = fileio.auto_open(
                output_stats, nproc=kwargs.get("nproc_out", 1)
            )
        except (OSError, ValueError) as e:
            raise OpenError(f"Could not open stats output: {output_stats} ({e})") from e

    try:
        counter = DemuxEngine(config).run()
        if out_stats_stream:
            counter.save(out_stats_stream, yaml=kwargs.get("yaml", False))
    finally:
        if out_stats_stream and out_stats_stream != sys.stdout:
            out_stats_stream.close()

    return counter


if __name__ == "__main__":
    split()
