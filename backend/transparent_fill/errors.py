"""Exception types raised by the fill engine and operation pipeline."""


class TransparentFillError(Exception):
    """Base class for all transparent-fill errors."""


class ChannelLayoutError(TransparentFillError, ValueError):
    """The source image cannot be processed because of its channels."""


class UnsupportedChannelLayout(ChannelLayoutError):
    """A palette-index, composite or premultiplied channel is present."""


class InvalidColorChannelCount(ChannelLayoutError):
    """The image has no color channels, or more than the engine can carry."""


class MissingAlphaChannel(ChannelLayoutError):
    """The image has no alpha channel, so there is nothing to repair."""


class FrontierInvariantError(TransparentFillError, RuntimeError):
    """
    A frontier pixel had no settled samples in its kernel.

    This points at broken frontier/occupancy bookkeeping, never at bad
    input, and is not recoverable.
    """


class OperationError(TransparentFillError, ValueError):
    """An operation request is malformed."""
