import enum
import functools

import numpy as np

from .errors import TagTypeMismatch, UnsupportedTagType
from .._logging import get_logger

logger = get_logger()

INT32_INFO = np.iinfo(np.int32)
UINT32_INFO = np.iinfo(np.uint32)

# all NaN payloads share a single partition
CANONICAL_NAN_BITS = 0x7FC00000


class SplitMode(enum.Enum):
    MAPPED = "mapped"
    PAIRED = "paired"
    REFERENCE = "reference"
    TAG = "tag"


class KeyKind(enum.Enum):
    BOOLEAN = "boolean"
    SIGNED = "signed"
    UNSIGNED = "unsigned"
    REAL = "real"
    STRING = "string"


class DecodePipeline(enum.Enum):
    SIGNED = "signed"
    UNSIGNED = "unsigned"
    REAL = "real"
    STRING = "string"


# key: SAM/BAM tag storage class, value: pipeline used for the whole run
TAG_TYPE_PIPELINES = {
    "c": DecodePipeline.SIGNED,
    "s": DecodePipeline.SIGNED,
    "i": DecodePipeline.SIGNED,
    "C": DecodePipeline.UNSIGNED,
    "S": DecodePipeline.UNSIGNED,
    "I": DecodePipeline.UNSIGNED,
    "f": DecodePipeline.REAL,
    "A": DecodePipeline.STRING,
    "Z": DecodePipeline.STRING,
    "H": DecodePipeline.STRING,
}

INTEGER_CODES = frozenset("csiCSI")
REAL_CODES = frozenset("f")
STRING_CODES = frozenset("AZH")


@functools.total_ordering
class PartitionKey:
    """
    An immutable value an alignment is routed by.

    Exactly one kind (boolean, signed/unsigned 32-bit integer, float32 or
    string) is active per run. Keys are hashable and compare exactly: real
    keys compare by their float32 bit pattern, so 0.0 and -0.0 are distinct
    and every NaN falls into the same partition. Keys of different kinds are
    not orderable.

    Use the class-method constructors rather than calling the class directly.
    """

    __slots__ = ("kind", "value", "_ident")

    def __init__(self, kind, value, ident=None):
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "_ident", value if ident is None else ident)

    def __setattr__(self, name, value):
        raise AttributeError("PartitionKey is immutable")

    @classmethod
    def boolean(cls, value):
        return cls(KeyKind.BOOLEAN, bool(value))

    @classmethod
    def signed(cls, value):
        value = int(value)
        if not INT32_INFO.min <= value <= INT32_INFO.max:
            raise ValueError(f"{value} does not fit into a signed 32-bit integer")
        return cls(KeyKind.SIGNED, value)

    @classmethod
    def unsigned(cls, value):
        value = int(value)
        if not UINT32_INFO.min <= value <= UINT32_INFO.max:
            raise ValueError(f"{value} does not fit into an unsigned 32-bit integer")
        return cls(KeyKind.UNSIGNED, value)

    @classmethod
    def real(cls, value):
        value32 = np.float32(value)
        if np.isnan(value32):
            bits = CANONICAL_NAN_BITS
        else:
            bits = int(value32.view(np.uint32))
        return cls(KeyKind.REAL, float(value32), bits)

    @classmethod
    def string(cls, value):
        return cls(KeyKind.STRING, str(value))

    def render(self):
        """Textual form of the value, as used in output filenames."""
        if self.kind is KeyKind.REAL:
            return np.format_float_positional(np.float32(self.value), trim="-")
        return str(self.value)

    def _order_value(self):
        if self.kind is KeyKind.REAL:
            is_nan = bool(np.isnan(self.value))
            return (is_nan, 0.0 if is_nan else self.value, self._ident)
        return self.value

    def __eq__(self, other):
        if not isinstance(other, PartitionKey):
            return NotImplemented
        return self.kind is other.kind and self._ident == other._ident

    def __lt__(self, other):
        if not isinstance(other, PartitionKey) or self.kind is not other.kind:
            return NotImplemented
        return self._order_value() < other._order_value()

    def __hash__(self):
        return hash((self.kind, self._ident))

    def __repr__(self):
        return f"PartitionKey({self.kind.value}, {self.value!r})"

    def __str__(self):
        return self.render()


def classify_tag_type(code, tag=""):
    """Select the decode pipeline for a tag storage class.

    Raises UnsupportedTagType for storage classes without a pipeline,
    e.g. B (numeric arrays).
    """
    try:
        return TAG_TYPE_PIPELINES[code]
    except KeyError:
        raise UnsupportedTagType(tag, code) from None


def decode_tag_value(pipeline, value, code):
    """Decode a tag value with a fixed pipeline into a PartitionKey.

    Integer pipelines accept any integer storage class as long as the value
    fits: htslib stores SAM integers in the smallest type that holds them, so
    one tag may come as C and as c within the same file.
    """
    try:
        if pipeline is DecodePipeline.SIGNED and code in INTEGER_CODES:
            return PartitionKey.signed(value)
        if pipeline is DecodePipeline.UNSIGNED and code in INTEGER_CODES:
            return PartitionKey.unsigned(value)
        if pipeline is DecodePipeline.REAL and code in REAL_CODES:
            return PartitionKey.real(value)
        if pipeline is DecodePipeline.STRING and code in STRING_CODES:
            return PartitionKey.string(value)
    except (TypeError, ValueError) as e:
        raise TagTypeMismatch(
            f"Cannot decode {value!r} [{code}] as {pipeline.value}: {e}"
        ) from e
    raise TagTypeMismatch(
        f"Tag storage class [{code}] is incompatible with the {pipeline.value} values"
    )


def extract_mapped(record):
    return PartitionKey.boolean(not record.is_unmapped)


def extract_paired(record):
    return PartitionKey.boolean(record.is_paired)


def extract_reference(record):
    # -1 (no reference) is a partition of its own
    return PartitionKey.signed(record.reference_id)


class TagKeyExtractor:
    """Extracts the value of one auxiliary tag as a PartitionKey.

    The first record that carries the tag fixes the decode pipeline for the
    rest of the run. Records without the tag yield None.
    """

    def __init__(self, tag):
        self.tag = tag
        self.pipeline = None

    def __call__(self, record):
        if not record.has_tag(self.tag):
            return None
        value, code = record.get_tag(self.tag, with_value_type=True)
        if self.pipeline is None:
            self.pipeline = classify_tag_type(code, self.tag)
            logger.debug(
                f"Tag {self.tag} has storage class [{code}], "
                f"splitting on {self.pipeline.value} values"
            )
        return decode_tag_value(self.pipeline, value, code)


_STATIC_EXTRACTORS = {
    SplitMode.MAPPED: extract_mapped,
    SplitMode.PAIRED: extract_paired,
    SplitMode.REFERENCE: extract_reference,
}


def make_key_extractor(mode, tag=None):
    """
    Build the key extraction function for a split mode.

    Parameters
    ----------
    mode : SplitMode
    tag : str
        Two-letter tag name, required for SplitMode.TAG.

    Returns
    -------
    extract : callable
        extract(record) returns a PartitionKey, or None when the record
        does not carry the key.
    """
    if mode is SplitMode.TAG:
        if not tag:
            raise ValueError("Splitting by tag requires a tag name")
        return TagKeyExtractor(tag)
    return _STATIC_EXTRACTORS[mode]
