from dataclasses import dataclass
import typing as tp

from .errors import OpenError
from .fileio import get_open_files_limit
from .._logging import get_logger

logger = get_logger()

# descriptors left for the input, stats output and the interpreter itself
OPEN_FILES_MARGIN = 16


@dataclass
class SinkEntry:
    filename: str
    sink: tp.Any
    n_records: int = 0
    closed: bool = False


class SinkPool:
    """
    Owns one open output per partition key.

    An output is opened the first time its key is routed and stays open
    until finalize(), which closes every output exactly once. The pool never
    reopens an output and never opens two outputs with the same filename.

    The number of open outputs equals the number of distinct keys; it is not
    capped. A warning is logged once when it approaches the open files limit.

    Parameters
    ----------
    naming : callable
        naming(key) returns the output filename for a key.
    sink_factory : callable
        sink_factory(filename) returns an object with write(record) and
        close().
    max_open_files : int or None
        Limit used for the warning, defaults to the soft RLIMIT_NOFILE.
    """

    def __init__(self, naming, sink_factory, max_open_files=None):
        self._naming = naming
        self._sink_factory = sink_factory
        self._entries = {}
        self._keys_by_filename = {}
        self._finalized = False
        if max_open_files is None:
            max_open_files = get_open_files_limit()
        self._warn_threshold = (
            None if max_open_files is None else max(1, max_open_files - OPEN_FILES_MARGIN)
        )
        self._warned = False

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key):
        return key in self._entries

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, tb):
        self.finalize()

    @property
    def finalized(self):
        return self._finalized

    def route(self, key, record):
        """Append a record to the output of its key, opening it if needed."""
        entry = self._entries.get(key)
        if entry is None:
            entry = self._open(key)
        entry.sink.write(record)
        entry.n_records += 1

    def _open(self, key):
        if self._finalized:
            raise RuntimeError("Cannot open new outputs after finalize()")

        try:
            filename = self._naming(key)
        except ValueError as e:
            raise OpenError(f"Cannot name the output file for {key!r}: {e}") from e
        if filename in self._keys_by_filename:
            raise OpenError(
                f"Output file {filename} is already used for "
                f"{self._keys_by_filename[filename]!r}, cannot reuse it for {key!r}"
            )

        try:
            sink = self._sink_factory(filename)
        except OpenError:
            raise
        except (OSError, ValueError) as e:
            raise OpenError(f"Could not open output file: {filename} ({e})") from e

        logger.debug(f"Opened {filename} for {key!r}")
        entry = SinkEntry(filename=filename, sink=sink)
        self._entries[key] = entry
        self._keys_by_filename[filename] = key
        self._check_open_files()
        return entry

    def _check_open_files(self):
        if self._warned or self._warn_threshold is None:
            return
        if len(self._entries) >= self._warn_threshold:
            logger.warning(
                f"{len(self._entries)} output files are open simultaneously, "
                "close to the limit of open files of this process. "
                "Consider raising it with `ulimit -n`."
            )
            self._warned = True

    def finalize(self):
        """Close every open output. Safe to call more than once.

        All outputs are closed even if some of them fail to close;
        the first error is raised afterwards.
        """
        first_error = None
        for entry in self._entries.values():
            if entry.closed:
                continue
            entry.closed = True
            try:
                entry.sink.close()
            except Exception as e:
                logger.error(f"Failed to close {entry.filename}: {e}")
                if first_error is None:
                    first_error = e
        self._finalized = True
        if first_error is not None:
            raise first_error

    def filenames(self):
        return [entry.filename for entry in self._entries.values()]

    def counts(self):
        """Number of records written per output filename, in opening order."""
        return {entry.filename: entry.n_records for entry in self._entries.values()}
