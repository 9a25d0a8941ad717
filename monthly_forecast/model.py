"""Feed-forward regression network used to forecast monthly quantities.

The network is deliberately small: two ReLU layers with L2 kernel penalties
and dropout, followed by a linear output.  It is fitted from scratch on every
training run; nothing is persisted.  Training can be driven synchronously via
:meth:`ForecastModel.fit` or as an asyncio task via :class:`TrainingRun`, which
yields control between epochs and publishes progress on an async stream.
"""

from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Dict, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F
import torch.optim as optim

from .errors import TrainingError
from .features import QUANTITY_SCALE
from .metrics import compute_metrics

logger = logging.getLogger(__name__)

N_FEATURES = 2


@dataclass
class TrainingConfig:
    """Hyper-parameters for one training run.

    Parameters
    ----------
    epochs : int, default 150
        Number of full passes over the training rows.  There is no early
        stopping.
    batch_size : int, default 32
        Mini-batch size.
    learning_rate : float, default 0.001
        Adam learning rate.
    validation_split : float, default 0.2
        Fraction of rows, taken from the end of the input in order, held out
        for validation loss reporting.  It never affects the weights.
    hidden_units : tuple of int, default ``(64, 32)``
        Width of each hidden layer.
    dropout : float, default 0.2
        Dropout rate after each hidden layer.
    l2 : float, default 0.01
        L2 penalty on the hidden layer kernels.
    report_every : int, default 10
        Emit a progress event after every ``report_every``-th epoch.
    seed : int, optional
        Seed for weight initialisation and batch shuffling.
    """

    epochs: int = 150
    batch_size: int = 32
    learning_rate: float = 0.001
    validation_split: float = 0.2
    hidden_units: Tuple[int, ...] = (64, 32)
    dropout: float = 0.2
    l2: float = 0.01
    report_every: int = 10
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.epochs < 1:
            raise ValueError("epochs must be at least 1")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")
        if not 0.0 <= self.validation_split < 1.0:
            raise ValueError("validation_split must be in [0, 1)")
        if not 0.0 <= self.dropout < 1.0:
            raise ValueError("dropout must be in [0, 1)")
        if self.report_every < 1:
            raise ValueError("report_every must be at least 1")


class ProgressEvent(NamedTuple):
    """Losses recorded at the end of an epoch."""

    epoch: int
    epochs: int
    loss: float
    val_loss: Optional[float] = None


ProgressCallback = Callable[[ProgressEvent], None]


def _build_network(config: TrainingConfig) -> nn.Sequential:
    layers: List[nn.Module] = []
    prev_dim = N_FEATURES
    for units in config.hidden_units:
        layers.extend([nn.Linear(prev_dim, units), nn.ReLU(), nn.Dropout(config.dropout)])
        prev_dim = units
    layers.append(nn.Linear(prev_dim, 1))
    network = nn.Sequential(*layers)
    # Glorot-uniform kernels and zero biases
    for module in network:
        if isinstance(module, nn.Linear):
            nn.init.xavier_uniform_(module.weight)
            nn.init.zeros_(module.bias)
    return network


def _check_tensors(features, targets) -> Tuple[torch.Tensor, torch.Tensor]:
    x = np.asarray(features, dtype=np.float32)
    y = np.asarray(targets, dtype=np.float32)
    if x.ndim != 2 or x.shape[1] != N_FEATURES:
        raise TrainingError(f"Expected features of shape (n, {N_FEATURES}), got {x.shape}")
    if y.ndim != 1:
        raise TrainingError(f"Expected a 1-D target vector, got shape {y.shape}")
    if x.shape[0] != y.shape[0]:
        raise TrainingError(f"Row count mismatch: {x.shape[0]} feature rows, {y.shape[0]} targets")
    if x.shape[0] == 0:
        raise TrainingError("Cannot train on an empty data set")
    return torch.from_numpy(x), torch.from_numpy(y)


class TrainedModel:
    """A fitted network ready for inference.

    Outputs are raw: still on the training scale and neither rounded nor
    clamped.
    """

    def __init__(
        self,
        network: nn.Module,
        history: List[ProgressEvent],
        validation_metrics: Optional[Dict[str, Optional[float]]] = None,
    ) -> None:
        self._network = network.eval()
        self.history = history
        self.validation_metrics = validation_metrics

    @property
    def final_loss(self) -> float:
        return self.history[-1].loss

    def predict_many(self, rows: Sequence[Sequence[float]]) -> np.ndarray:
        x = torch.as_tensor(np.asarray(rows, dtype=np.float32))
        if x.ndim != 2 or x.shape[1] != N_FEATURES:
            raise ValueError(f"Expected rows of {N_FEATURES} features, got shape {tuple(x.shape)}")
        with torch.no_grad():
            out = self._network(x)
        return out.squeeze(1).numpy().astype(float)

    def predict(self, row: Sequence[float]) -> float:
        """Run one forward pass for a single ``[time_index, product_code]`` row."""
        return float(self.predict_many([row])[0])


class _Trainer:
    """Holds the mutable state of one run; discarded if the run is abandoned."""

    def __init__(self, config: TrainingConfig, features, targets) -> None:
        x, y = _check_tensors(features, targets)
        self.config = config
        self._generator = torch.Generator()
        if config.seed is None:
            self._generator.seed()
        else:
            self._generator.manual_seed(config.seed)
            torch.manual_seed(config.seed)

        self.network = _build_network(config)
        self._regularized = [m for m in list(self.network)[:-1] if isinstance(m, nn.Linear)]
        self.optimizer = optim.Adam(self.network.parameters(), lr=config.learning_rate)

        n = x.shape[0]
        n_val = int(math.floor(n * config.validation_split))
        split_at = n - n_val if 0 < n_val < n else n
        self.x_train, self.y_train = x[:split_at], y[:split_at]
        if split_at < n:
            self.x_val, self.y_val = x[split_at:], y[split_at:]
        else:
            self.x_val = self.y_val = None
        self.history: List[ProgressEvent] = []
        logger.debug("Training on %d row(s), validating on %d", split_at, n - split_at)

    def _loss(self, x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
        mse = F.mse_loss(self.network(x).squeeze(1), y)
        penalty = sum(layer.weight.pow(2).sum() for layer in self._regularized)
        return mse + self.config.l2 * penalty

    def _run_epoch(self, epoch: int) -> ProgressEvent:
        self.network.train()
        n = self.x_train.shape[0]
        order = torch.randperm(n, generator=self._generator)
        total = 0.0
        for start in range(0, n, self.config.batch_size):
            idx = order[start:start + self.config.batch_size]
            self.optimizer.zero_grad()
            loss = self._loss(self.x_train[idx], self.y_train[idx])
            if not torch.isfinite(loss):
                raise TrainingError(f"Loss became non-finite at epoch {epoch}")
            loss.backward()
            self.optimizer.step()
            total += loss.item() * len(idx)
        train_loss = total / n

        val_loss = None
        if self.x_val is not None:
            self.network.eval()
            with torch.no_grad():
                val_loss = self._loss(self.x_val, self.y_val).item()
            if not math.isfinite(val_loss):
                raise TrainingError(f"Validation loss became non-finite at epoch {epoch}")

        event = ProgressEvent(epoch=epoch, epochs=self.config.epochs, loss=train_loss, val_loss=val_loss)
        self.history.append(event)
        return event

    def epochs(self) -> Iterator[Optional[ProgressEvent]]:
        """Run every epoch, yielding the event for reporting epochs and None otherwise."""
        for epoch in range(1, self.config.epochs + 1):
            event = self._run_epoch(epoch)
            if epoch % self.config.report_every == 0:
                logger.info("training epoch... %d/%d, loss: %.4f", epoch, event.epochs, event.loss)
                yield event
            else:
                yield None

    def finish(self) -> TrainedModel:
        self.network.eval()
        metrics = None
        if self.x_val is not None:
            with torch.no_grad():
                pred = self.network(self.x_val).squeeze(1).numpy()
            metrics = compute_metrics(self.y_val.numpy(), pred, scale=QUANTITY_SCALE)
        return TrainedModel(self.network, self.history, metrics)


class ForecastModel:
    """Factory for trained networks.

    Each call to :meth:`fit` builds fresh weights; earlier results are never
    updated in place.
    """

    def __init__(self, config: Optional[TrainingConfig] = None) -> None:
        self.config = config or TrainingConfig()

    def fit(
        self,
        features,
        targets,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TrainedModel:
        """Train synchronously.

        Parameters
        ----------
        features : array-like of shape (n, 2)
            Encoded feature rows.
        targets : array-like of shape (n,)
            Scaled quantities.
        on_progress : callable, optional
            Called with a :class:`ProgressEvent` after every reporting epoch.

        Raises
        ------
        TrainingError
            On malformed tensors or a non-finite loss.
        """
        trainer = _Trainer(self.config, features, targets)
        for event in trainer.epochs():
            if event is not None and on_progress is not None:
                on_progress(event)
        return trainer.finish()


class TrainingRun:
    """Asynchronous, cancellable training with a progress stream.

    Typical use::

        run = TrainingRun(ForecastModel(), features, targets)
        task = asyncio.create_task(run.run())
        async for event in run.progress():
            print(event.epoch, event.loss)
        trained = await task

    Cancelling the task discards the partially trained network; the progress
    stream ends in every case.
    """

    def __init__(self, model: ForecastModel, features, targets) -> None:
        self.model = model
        self._features = features
        self._targets = targets
        self._events: "asyncio.Queue[Optional[ProgressEvent]]" = asyncio.Queue()
        self._started = False

    async def run(self) -> TrainedModel:
        if self._started:
            raise RuntimeError("A training run can only be started once")
        self._started = True
        try:
            trainer = _Trainer(self.model.config, self._features, self._targets)
            for event in trainer.epochs():
                if event is not None:
                    self._events.put_nowait(event)
                await asyncio.sleep(0)
            return trainer.finish()
        finally:
            self._events.put_nowait(None)

    async def progress(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self._events.get()
            if event is None:
                return
            yield event
