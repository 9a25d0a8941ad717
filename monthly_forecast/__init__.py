"""Monthly per-product sales forecasting with a small neural network.

This package parses monthly sales records from CSV text, encodes them into
numeric features, trains a feed-forward regression network with PyTorch and
generates a six month forecast for every product.  See ``scripts/forecast.py``
for a command line entry point.
"""

from .data import Observation, load_observations, parse_records  # noqa: F401
from .errors import EncodingError, ForecastPipelineError, ParseError, TrainingError  # noqa: F401
from .features import EncodingTable, build_encoding, encode  # noqa: F401
from .forecast import Prediction, generate  # noqa: F401
from .model import ForecastModel, ProgressEvent, TrainedModel, TrainingConfig, TrainingRun  # noqa: F401
from .pipeline import PipelineSession, forecast, parse, train  # noqa: F401

__all__ = [
    "Observation",
    "load_observations",
    "parse_records",
    "ForecastPipelineError",
    "ParseError",
    "EncodingError",
    "TrainingError",
    "EncodingTable",
    "build_encoding",
    "encode",
    "Prediction",
    "generate",
    "ForecastModel",
    "ProgressEvent",
    "TrainedModel",
    "TrainingConfig",
    "TrainingRun",
    "PipelineSession",
    "parse",
    "train",
    "forecast",
]
