# -*- coding: utf-8 -*-

import click
import functools
import sys
from .. import __version__
import logging
from .._logging import get_logger


CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
}


@click.version_option(version=__version__)
@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--post-mortem", help="Post mortem debugging", is_flag=True, default=False
)
@click.option(
    "--output-profile",
    help="Profile performance with Python cProfile and dump the statistics "
    "into a binary file",
    type=str,
    default="",
)
@click.option("-v", "--verbose", help="Verbose logging.", count=True)
def cli(post_mortem, output_profile, verbose):
    """Split alignment files by read properties.

    All bamdemux commands have a few common options, which should be typed
    _before_ the command name.

    """
    if post_mortem:
        import traceback

        try:
            import ipdb as pdb
        except ImportError:
            import pdb

        def _excepthook(exc_type, value, tb):
            traceback.print_exception(exc_type, value, tb)
            print()
            pdb.pm()

        sys.excepthook = _excepthook

    if output_profile:
        import cProfile
        import atexit

        pr = cProfile.Profile()
        pr.enable()

        def _atexit_profile_hook():
            pr.disable()
            pr.dump_stats(output_profile)

        atexit.register(_atexit_profile_hook)

    # Initialize logging to stderr
    logging.basicConfig(stream=sys.stderr)
    logging.captureWarnings(True)
    root_logger = get_logger()

    # Set verbosity level
    if verbose > 0:
        root_logger.setLevel(logging.DEBUG)
    else:
        root_logger.setLevel(logging.INFO)


def common_io_options(func):
    @click.option(
        "--nproc-in",
        type=int,
        default=1,
        show_default=True,
        help="Number of htslib threads used to decompress the input.",
    )
    @click.option(
        "--nproc-out",
        type=int,
        default=1,
        show_default=True,
        help="Number of htslib threads used to compress each output BAM file. "
        "Every output file gets its own threads.",
    )
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)

    return wrapper


from . import split
