#!/usr/bin/env python3
"""Train a forecast network on monthly sales history and print the forecast.

This command line script reads a CSV file with a header row followed by
``date (YYYY-MM), product, quantity`` columns, trains a fresh model on it and
produces a six month forecast for every product.  Nothing is saved between
runs; the forecast is printed to stdout or written to a CSV file.

Usage example::

    python scripts/forecast.py --input-csv data/sales.csv \
        --product Widget --seed 42 --output-file forecast_widget.csv

Training progress is reported every ten epochs.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to sys.path so that the monthly_forecast package can be
# imported when executing this script directly.  When the package is
# installed or the scripts are run via ``python -m``, this is not needed.
sys.path.append(str(Path(__file__).resolve().parents[1]))

from monthly_forecast.errors import ForecastPipelineError
from monthly_forecast.model import ProgressEvent, TrainingConfig
from monthly_forecast.pipeline import PipelineSession
from monthly_forecast.presentation import (
    ALL_PRODUCTS,
    predictions_to_frame,
    select_predictions,
    status_message,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Forecast the next six months of sales per product.")
    parser.add_argument(
        "--input-csv",
        required=True,
        help="Path to the CSV file with date, product and quantity columns.",
    )
    parser.add_argument(
        "--product",
        default=ALL_PRODUCTS,
        help="Only show the forecast for this product.  Defaults to all products.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Drop rows with negative quantities in addition to malformed rows.",
    )
    parser.add_argument("--epochs", type=int, default=150, help="Number of training epochs.")
    parser.add_argument("--batch-size", type=int, default=32, help="Mini-batch size.")
    parser.add_argument("--learning-rate", type=float, default=0.001, help="Adam learning rate.")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible weights and batch order.",
    )
    parser.add_argument(
        "--output-file",
        default=None,
        help="Optional path to write the forecast to a CSV file.  If omitted, the forecast is printed to stdout.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def _report(event: ProgressEvent) -> None:
    print(status_message(event))


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = TrainingConfig(
        epochs=args.epochs,
        batch_size=args.batch_size,
        learning_rate=args.learning_rate,
        seed=args.seed,
    )
    text = Path(args.input_csv).read_text(encoding="utf-8")
    try:
        session = PipelineSession().load(text, strict=args.strict)
        print(f"Data loaded successfully! {len(session.observations)} rows.")
        session = asyncio.run(session.train(config, on_progress=_report))
    except ForecastPipelineError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print("Training model completed! Predictions of sales generated.")

    selected = select_predictions(session.predictions, args.product)
    if not selected:
        print(f"No forecast for product '{args.product}'", file=sys.stderr)
        return 1
    forecast = predictions_to_frame(selected)
    if args.output_file:
        output_path = Path(args.output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        forecast.to_csv(output_path, index=False)
        print(f"✅ Forecast written to {output_path}")
    else:
        print(forecast.to_string(index=False))
    if session.model.validation_metrics:
        print(f"📊 Validation metrics: {session.model.validation_metrics}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
