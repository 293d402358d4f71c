import os
import time
import typing as tp
from dataclasses import dataclass

from .keys import KeyKind, SplitMode

OUTPUT_EXT = ".bam"

# key: (split mode, boolean key value), value: filename token
BOOLEAN_TOKENS = {
    (SplitMode.MAPPED, True): ".MAPPED",
    (SplitMode.MAPPED, False): ".UNMAPPED",
    (SplitMode.PAIRED, True): ".PAIRED_END",
    (SplitMode.PAIRED, False): ".SINGLE_END",
}
REFERENCE_TOKEN = ".REF_"
TAG_TOKEN = ".TAG_"

# name used for alignments without a reference (reference id -1)
NO_REFERENCE_NAME = "unmapped"


def is_stdin(path):
    return not path or path == "-"


def get_timestamp_string(now=None):
    """Human readable timestamp with whitespace converted to '_'."""
    return time.ctime(now).replace(" ", "_")


def remove_filename_extension(path):
    """/path/to/file.bam becomes /path/to/file"""
    return os.path.splitext(path)[0]


def resolve_output_stub(input_path=None, stub=None, now=None):
    """
    Pick the prefix of the output files.

    A user-provided stub wins. Otherwise the input path without its
    extension is used, and when reading from stdin, a timestamp.
    """
    if stub:
        return stub
    if not is_stdin(input_path):
        return remove_filename_extension(input_path)
    return get_timestamp_string(now)


@dataclass(frozen=True)
class OutputNamingPolicy:
    """
    Maps a partition key to the path of its output file.

    Attributes:
        stub (str): Prefix of all output files.
        mode (SplitMode): The split property of the run.
        tag (Optional[str]): Tag name, used in SplitMode.TAG.
        references (Tuple[str, ...]): Reference names indexed by reference id,
            used in SplitMode.REFERENCE.
    """

    stub: str
    mode: SplitMode
    tag: tp.Optional[str] = None
    references: tp.Tuple[str, ...] = ()

    def reference_name(self, ref_id: int) -> str:
        if ref_id == -1:
            return NO_REFERENCE_NAME
        if not 0 <= ref_id < len(self.references):
            raise ValueError(f"Reference id {ref_id} is not defined in the header")
        return self.references[ref_id]

    def __call__(self, key) -> str:
        if self.mode in (SplitMode.MAPPED, SplitMode.PAIRED):
            if key.kind is not KeyKind.BOOLEAN:
                raise ValueError(f"Expected a boolean key, got {key!r}")
            token = BOOLEAN_TOKENS[(self.mode, key.value)]
        elif self.mode is SplitMode.REFERENCE:
            token = REFERENCE_TOKEN + self.reference_name(key.value)
        elif self.mode is SplitMode.TAG:
            token = f"{TAG_TOKEN}{self.tag}_{key.render()}"
        else:
            raise ValueError(f"Unknown split mode: {self.mode}")
        return self.stub + token + OUTPUT_EXT
