"""Exception types raised by the forecasting pipeline.

All three are terminal for the current run: callers surface the message and
keep whatever state they had before the run started.
"""


class ForecastPipelineError(Exception):
    """Base class for pipeline failures."""


class ParseError(ForecastPipelineError):
    """No usable rows could be read from the input text."""


class EncodingError(ForecastPipelineError):
    """Observations could not be turned into model features."""


class TrainingError(ForecastPipelineError):
    """Training received malformed tensors or diverged numerically."""
