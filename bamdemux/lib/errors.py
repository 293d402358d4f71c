class SplitError(Exception):
    """Base class for failures that abort a split run."""


class OpenError(SplitError):
    """The input or one of the outputs cannot be opened."""


class NoModeSelected(SplitError):
    """No (or more than one) split property was requested."""


class UnsupportedTagType(SplitError):
    def __init__(self, tag, code):
        self.tag = tag
        self.code = code
        super().__init__(
            f"Unknown tag storage class encountered for tag {tag}: [{code}]"
        )


class TagTypeMismatch(ValueError):
    """A tag value cannot be decoded with the type fixed for the run.

    Never aborts a run: the record is dropped and counted.
    """
