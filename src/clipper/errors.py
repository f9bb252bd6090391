"""
Error types raised by the clip pipeline.
"""


class ClipperError(RuntimeError):
    """Base class for pipeline failures that abort a single input file."""


class EmptyTranscriptError(ClipperError):
    """The insights payload has no videos, no transcript entries, or only blank text."""


class InconsistentAssignmentError(ClipperError):
    """The story assignment references unknown blocks, repeats a block, or omits one."""


class DecisionResponseError(ClipperError):
    """The decision service returned content that could not be used."""


class BoundaryRejected(ValueError):
    """A proposed story boundary failed validation; the coarse boundary stands."""
