import enum
import functools
import typing as tp
from dataclasses import dataclass

import pysam

from . import fileio, headerops
from .errors import NoModeSelected, OpenError, SplitError, TagTypeMismatch
from .keys import SplitMode, make_key_extractor
from .naming import OutputNamingPolicy, resolve_output_stub
from .sinkpool import SinkPool
from .stats import SplitCounter
from .._logging import get_logger

logger = get_logger()

PG_ID = "bamdemux_split"


class EngineState(enum.Enum):
    IDLE = "idle"
    STUB_RESOLVED = "stub_resolved"
    SOURCE_OPEN = "source_open"
    ROUTING = "routing"
    FINALIZED = "finalized"
    FAILED = "failed"


@dataclass
class SplitConfig:
    """
    Settings of a single split run.

    Attributes:
        input_path (Optional[str]): SAM/BAM/CRAM file. None or '-' reads stdin.
        mode (Optional[SplitMode]): The property to split on.
        tag (Optional[str]): Tag name for SplitMode.TAG.
        stub (Optional[str]): Prefix of the output files, overrides the one
            derived from the input path.
        nproc_in (int): htslib threads used to decompress the input.
        nproc_out (int): htslib threads used to compress each output.
        add_pg (bool): Append a @PG record to the output headers.
        command_line (Optional[str]): CL field of the @PG record,
            defaults to sys.argv.
    """

    input_path: tp.Optional[str] = None
    mode: tp.Optional[SplitMode] = None
    tag: tp.Optional[str] = None
    stub: tp.Optional[str] = None
    nproc_in: int = 1
    nproc_out: int = 1
    add_pg: bool = True
    command_line: tp.Optional[str] = None


class DemuxEngine:
    """
    Splits one alignment stream into one BAM file per partition key.

    A run goes through IDLE -> STUB_RESOLVED -> SOURCE_OPEN -> ROUTING ->
    FINALIZED, or ends in FAILED. Every output opened during the run is
    closed on both outcomes; files written before a failure are left on disk.

    Parameters
    ----------
    config : SplitConfig
    source_opener : callable
        source_opener(path, nproc=...) returns an open pysam.AlignmentFile
        (or any iterable of records with .header, .references and .close()).
    sink_opener : callable
        sink_opener(filename, header, nproc=...) returns an object with
        write(record) and close().
    """

    def __init__(
        self,
        config,
        source_opener=fileio.open_alignment_source,
        sink_opener=fileio.open_alignment_sink,
    ):
        self.config = config
        self._source_opener = source_opener
        self._sink_opener = sink_opener

        self.state = EngineState.IDLE
        self.error = None
        self.stub = None
        self.counter = SplitCounter()
        self.pool = None
        self._source = None
        self._extractor = None

    def _set_state(self, state):
        logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state

    def run(self):
        """
        Perform the split in a single pass over the input.

        Returns
        -------
        counter : SplitCounter
            Statistics of the run.

        Raises
        ------
        OpenError, NoModeSelected, UnsupportedTagType
        """
        if self.state is not EngineState.IDLE:
            raise RuntimeError("A DemuxEngine can only be run once")

        try:
            self.stub = resolve_output_stub(self.config.input_path, self.config.stub)
            self._set_state(EngineState.STUB_RESOLVED)

            self._source = self._source_opener(
                self.config.input_path, nproc=self.config.nproc_in
            )
            self._set_state(EngineState.SOURCE_OPEN)

            self._extractor = self._make_extractor()
            self.pool = self._make_pool()
            self._set_state(EngineState.ROUTING)
            self._route_all()
        except Exception as e:
            error = self._fail(e)
            try:
                self._shutdown()
            except Exception as close_error:
                logger.error(f"Failed to close the outputs: {close_error}")
                raise error from close_error
            if error is e:
                raise
            raise error from e

        try:
            self._shutdown()
        except Exception as e:
            error = self._fail(e, wrap=Exception)
            if error is e:
                raise
            raise error from e

        self._set_state(EngineState.FINALIZED)
        self._log_summary()
        return self.counter

    def _make_extractor(self):
        mode = self.config.mode
        if mode is None:
            raise NoModeSelected(
                "No property given to split on. Please use --mapped, --paired, "
                "--reference, or --tag TAG to specify split behavior."
            )
        if mode is SplitMode.TAG and not self.config.tag:
            raise NoModeSelected("Splitting by tag requires a tag name.")
        return make_key_extractor(mode, self.config.tag)

    def _make_output_header(self):
        header = headerops.get_header_dict(self._source)
        if self.config.add_pg:
            header = headerops.append_new_pg(
                header, ID=PG_ID, PN=PG_ID, CL=self.config.command_line
            )
        return pysam.AlignmentHeader.from_dict(header)

    def _make_pool(self):
        naming = OutputNamingPolicy(
            stub=self.stub,
            mode=self.config.mode,
            tag=self.config.tag,
            references=tuple(self._source.references),
        )
        sink_factory = functools.partial(
            self._sink_opener,
            header=self._make_output_header(),
            nproc=self.config.nproc_out,
        )
        return SinkPool(naming, sink_factory)

    def _route_all(self):
        extract = self._extractor
        for record in self._source:
            try:
                key = extract(record)
            except TagTypeMismatch as e:
                logger.debug(f"Dropping {record.query_name}: {e}")
                self.counter.add_record("dropped_type_mismatch")
                continue

            if key is None:
                self.counter.add_record("skipped_no_key")
                continue

            self.pool.route(key, record)
            self.counter.add_record("routed")

    def _fail(self, error, wrap=OSError):
        """Record the cause of a failed run, errors of type wrap become OpenError."""
        if isinstance(error, wrap) and not isinstance(error, SplitError):
            error = OpenError(f"Could not write the output files: {error}")
        self.error = error
        self._set_state(EngineState.FAILED)
        return error

    def _shutdown(self):
        try:
            if self.pool is not None:
                self.counter.set_outputs(self.pool.counts())
                self.pool.finalize()
        finally:
            if self._source is not None:
                self._source.close()

    def _log_summary(self):
        logger.info(
            f"Split {self.counter['total']} records into "
            f"{self.counter['n_outputs']} files"
        )
        if self.counter["dropped_type_mismatch"]:
            logger.warning(
                f"Dropped {self.counter['dropped_type_mismatch']} records whose "
                f"{self.config.tag} tag does not match the type of the first one"
            )
        if self.config.mode is SplitMode.TAG and self._extractor.pipeline is None:
            logger.info(f"Tag {self.config.tag} was not found in any record")


def split_alignments(config, **kwargs):
    """Run a split with the given SplitConfig, returns a SplitCounter."""
    return DemuxEngine(config, **kwargs).run()
