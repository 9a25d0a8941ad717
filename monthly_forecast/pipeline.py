"""Entry points tying the parser, encoder, model and generator together.

The functions here are what a user interface calls.  State between calls is
kept in an explicit :class:`PipelineSession` value owned by the caller;
nothing in this module holds on to data between invocations.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .data import Observation, parse_records
from .errors import EncodingError
from .features import FORECAST_HORIZON, EncodingTable, build_encoding, encode
from .forecast import Prediction, generate
from .model import ForecastModel, ProgressCallback, TrainedModel, TrainingConfig, TrainingRun

logger = logging.getLogger(__name__)

parse = parse_records


class TrainingResult(NamedTuple):
    model: TrainedModel
    encoding: EncodingTable


@dataclass(frozen=True)
class TrainingJob:
    """A pending training run together with the encoding it was built from."""

    run: TrainingRun
    encoding: EncodingTable

    async def complete(self, on_progress: Optional[ProgressCallback] = None) -> TrainingResult:
        """Run the training and forward progress events to ``on_progress``."""
        task = asyncio.ensure_future(self.run.run())
        try:
            async for event in self.run.progress():
                if on_progress is not None:
                    on_progress(event)
            model = await task
        finally:
            if not task.done():
                task.cancel()
        return TrainingResult(model=model, encoding=self.encoding)


def prepare_training(
    observations: Sequence[Observation],
    config: Optional[TrainingConfig] = None,
) -> TrainingJob:
    """Encode observations and set up (but not start) a training run."""
    features, targets, encoding = encode(observations)
    run = TrainingRun(ForecastModel(config), features, targets)
    return TrainingJob(run=run, encoding=encoding)


async def train(
    observations: Sequence[Observation],
    config: Optional[TrainingConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> TrainingResult:
    """Train a fresh model on ``observations``.

    Raises
    ------
    EncodingError
        If ``observations`` is empty.
    TrainingError
        If training diverges.
    """
    job = prepare_training(observations, config)
    return await job.complete(on_progress)


def forecast(
    result: TrainingResult,
    observations: Optional[Sequence[Observation]] = None,
    horizon: int = FORECAST_HORIZON,
) -> List[Prediction]:
    """Generate predictions with the encoding captured at training time.

    If ``observations`` are passed they must encode to the same table the
    model was trained with; otherwise the features would silently disagree
    with training and :class:`EncodingError` is raised.
    """
    if observations is not None and build_encoding(observations) != result.encoding:
        raise EncodingError("Observations changed since the model was trained; retrain first")
    return generate(result.model, result.encoding, horizon=horizon)


@dataclass(frozen=True)
class PipelineSession:
    """Everything the interface needs to remember between user actions.

    Sessions are never modified; each action returns a new one.  When an
    action fails the exception propagates and the caller keeps its previous
    session.
    """

    observations: Tuple[Observation, ...] = ()
    encoding: Optional[EncodingTable] = None
    model: Optional[TrainedModel] = None
    predictions: Tuple[Prediction, ...] = ()

    @property
    def can_train(self) -> bool:
        return bool(self.observations)

    @property
    def is_trained(self) -> bool:
        return self.model is not None

    def load(self, text: str, strict: bool = False) -> "PipelineSession":
        """Replace the loaded data; any previous model is dropped."""
        observations = parse_records(text, strict=strict)
        return PipelineSession(observations=tuple(observations))

    async def train(
        self,
        config: Optional[TrainingConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> "PipelineSession":
        """Train on the loaded data and generate predictions in one step."""
        if not self.can_train:
            raise EncodingError("No data available for processing")
        result = await train(self.observations, config, on_progress)
        predictions = forecast(result)
        logger.info("Training model completed! Predictions of sales generated.")
        return replace(
            self,
            encoding=result.encoding,
            model=result.model,
            predictions=tuple(predictions),
        )


def run_session(
    text: str,
    config: Optional[TrainingConfig] = None,
    on_progress: Optional[ProgressCallback] = None,
    strict: bool = False,
) -> PipelineSession:
    """Load, train and forecast synchronously; convenient for scripts."""
    session = PipelineSession().load(text, strict=strict)
    return asyncio.run(session.train(config, on_progress))


__all__ = [
    "TrainingJob",
    "TrainingResult",
    "PipelineSession",
    "parse",
    "prepare_training",
    "train",
    "forecast",
    "run_session",
]
