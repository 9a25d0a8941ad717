"""
Pytest fixtures for forecasting tests.
"""
from typing import List, Sequence

import numpy as np
import pytest

from monthly_forecast.data import Observation
from monthly_forecast.model import TrainingConfig

SAMPLE_CSV = "date,product,quantity\n2024-01,Widget,100\n2024-02,Widget,120\n2024-01,Gadget,50\n"


class RecordingModel:
    """Stand-in for TrainedModel that returns fixed outputs and records its inputs."""

    def __init__(self, outputs: Sequence[float] = (0.1,)):
        self.outputs = list(outputs)
        self.rows: List[List[float]] = []

    def predict_many(self, rows):
        self.rows.extend([list(r) for r in rows])
        values = [self.outputs[i % len(self.outputs)] for i in range(len(rows))]
        return np.asarray(values, dtype=float)

    def predict(self, row):
        return float(self.predict_many([row])[0])


def make_observations(rows) -> List[Observation]:
    """Build observations from ``(YYYY-MM, product, quantity)`` tuples."""
    return [Observation(month=f"{m}-01", product=p, quantity=float(q)) for m, p, q in rows]


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def observations() -> List[Observation]:
    return make_observations([
        ("2024-01", "Widget", 100),
        ("2024-02", "Widget", 120),
        ("2024-01", "Gadget", 50),
    ])


@pytest.fixture
def history() -> List[Observation]:
    """A year of data for three products."""
    rows = []
    for month in range(1, 13):
        rows.append((f"2023-{month:02d}", "Widget", 100 + 10 * month))
        rows.append((f"2023-{month:02d}", "Gadget", 50 + 2 * month))
        rows.append((f"2023-{month:02d}", "Doohickey", 300 - 5 * month))
    return make_observations(rows)


@pytest.fixture
def fast_config() -> TrainingConfig:
    return TrainingConfig(epochs=30, seed=7)


@pytest.fixture
def recording_model() -> RecordingModel:
    return RecordingModel()
