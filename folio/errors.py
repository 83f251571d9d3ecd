"""Exceptions raised by the manuscript pipeline."""


class PipelineError(Exception):
    """Base class for fatal pipeline failures."""


class FetchError(PipelineError):
    """The manuscript could not be downloaded."""


class UnsupportedFormatError(PipelineError, ValueError):
    """The requested file type has no structure recoverer."""


class InvalidSamplePercentError(PipelineError, ValueError):
    """The free-sample percentage is outside 0-100."""


class StructureRecoveryError(PipelineError):
    """No sections could be recovered from the manuscript."""


class PersistenceError(PipelineError):
    """Writing sections to the sink failed."""


class RateLimitedError(Exception):
    """The formatting service asked us to slow down."""
