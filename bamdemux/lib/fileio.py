import shutil
import subprocess
import shlex
import sys
import typing as tp
from dataclasses import dataclass, field

import pysam

from .errors import OpenError
from .naming import is_stdin


# dictionary of automatic compressing commands for text outputs
# key: file extension
# value: list of candidate tools, the first one found in the system is used:
#       'tool': name of the tool looked up via shutil,
#       'command': command line with the number of threads to be formatted.
PRESET_COMMANDS = {
    "gz": [
        {"tool": "bgzip", "command": "bgzip -c -@ {}"},
        {"tool": "gzip", "command": "gzip -c"},
    ],
    "lz4": [{"tool": "lz4c", "command": "lz4c -cz"}],
}


@dataclass
class CommandFormatter:
    """
    Opens a text output for writing, piping it through a compressor picked
    by the file extension.

    Attributes:
        path (Optional[str]): Path to the target file. Empty (None) or '-'
            means standard output.
        nproc (int): Number of threads for multithreaded tools.
        command (Optional[str]): Compressing command, detected from the
            extension of path.
    """

    path: tp.Optional[str] = None
    nproc: int = 1
    command: tp.Optional[str] = field(default=None, init=False)

    def __post_init__(self):
        if is_stdin(self.path):
            return

        extension = self.path.split(".")[-1]
        if extension not in PRESET_COMMANDS:
            return

        checked_tools = []
        for candidate in PRESET_COMMANDS[extension]:
            if shutil.which(candidate["tool"]) is None:
                checked_tools.append(candidate["tool"])
                continue
            self.command = candidate["command"].format(self.nproc)
            return

        raise ValueError(
            f"{', '.join(checked_tools)} not found, cannot write {self.path}"
        )

    def __call__(self):
        if is_stdin(self.path):
            return sys.stdout

        if not self.command:
            return open(self.path, "w")

        outfile = open(self.path, "wb")
        process = subprocess.Popen(
            shlex.split(self.command),
            stdin=subprocess.PIPE,
            stdout=outfile,
            text=True,
        )
        # the child process holds its own copy of the descriptor
        outfile.close()
        return process.stdin


def auto_open(path, nproc=1):
    """
    Open a text output for writing, compressing it if the path ends with
    .gz or .lz4.

    Parameters:
        path (str): Path to the file or '-' for standard output.
        nproc (int, optional): Number of threads for multithreaded tools.

    Returns:
        file-like object ready for writing.

    Raises:
        ValueError: no compressing tool is found for the extension.
    """
    return CommandFormatter(path=path, nproc=nproc)()


def open_alignment_source(path, nproc=1):
    """
    Open a SAM/BAM/CRAM file for sequential reading, the format is
    auto-detected. An empty path or '-' reads from stdin.
    """
    display_path = "stdin" if is_stdin(path) else path
    try:
        return pysam.AlignmentFile(
            "-" if is_stdin(path) else path,
            "r",
            check_sq=False,
            threads=nproc,
        )
    except (OSError, ValueError) as e:
        raise OpenError(f"Could not open alignment file: {display_path} ({e})") from e


def open_alignment_sink(filename, header, nproc=1):
    """Open a BAM file for writing with the given header."""
    try:
        return pysam.AlignmentFile(filename, "wb", header=header, threads=nproc)
    except (OSError, ValueError) as e:
        raise OpenError(f"Could not open output file: {filename} ({e})") from e


def get_open_files_limit():
    """Soft limit on open file descriptors, None if unknown or unlimited."""
    try:
        import resource
    except ImportError:  # not available on Windows
        return None
    soft, _ = resource.getrlimit(resource.RLIMIT_NOFILE)
    if soft == resource.RLIM_INFINITY:
        return None
    return soft
