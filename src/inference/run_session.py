"""Run a single diabetes risk session against the scoring service."""

import argparse
import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from src.analytics.what_if import WhatIfEngine, WhatIfPanel, classify_delta
from src.client.scoring_client import ScoringClient
from src.client.transport import HttpTransport
from src.config.settings import load_config
from src.errors import EmptyInput, ScoringError, ValidationError
from src.history.ledger import HistoryLedger
from src.session.store import SessionStore
from src.session.views import (
    DetailedAnalysisView,
    ModelOverviewView,
    RecommendationsView,
    RiskMapView,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_what_if(text: str) -> Tuple[str, float]:
    """Parse a FEATURE=VALUE override."""
    feature, sep, value = text.partition("=")
    if not sep or not feature.strip():
        raise argparse.ArgumentTypeError(f"Expected FEATURE=VALUE, got '{text}'")
    try:
        return feature.strip(), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid what-if value: '{value}'") from None


async def run_session(
    record: dict,
    config: dict,
    what_if: Optional[Tuple[str, float]] = None,
    client: Optional[ScoringClient] = None,
) -> dict:
    """Commit a record and collect every dependent view into a report.

    Args:
        record: Raw health metrics
        config: Session configuration
        what_if: Optional (feature, value) override to probe
        client: Scoring client; built from ``config`` when omitted

    Returns:
        Session report dictionary
    """
    start_time = datetime.now()

    transport = None
    if client is None:
        transport = HttpTransport(config["api"]["base_url"], config["api"]["timeout_seconds"])
        client = ScoringClient(transport)

    store = SessionStore(client)
    detailed = DetailedAnalysisView(store, client)
    risk_map = RiskMapView(store, client)
    recommendations = RecommendationsView(store, client)
    overview = ModelOverviewView(store, client)
    ledger = HistoryLedger(store, client, limit=config["history"]["limit"])
    panel = WhatIfPanel(store, WhatIfEngine(client))
    views = [detailed, risk_map, recommendations, overview, ledger]

    try:
        try:
            snapshot = await store.commit(record)
        except ValidationError as e:
            return {
                "status": "rejected",
                "field": e.field,
                "error": str(e),
                "timestamp": start_time.isoformat(),
            }
        except ScoringError as e:
            return {
                "status": "error",
                "error": f"Prediction failed: {e}",
                "timestamp": start_time.isoformat(),
            }

        for view in views:
            await view.wait_idle()

        report = {
            "status": "success",
            "revision": snapshot.revision,
            "prediction": snapshot.result.classification.value,
            "probability": snapshot.result.probability,
            "risk_score": snapshot.result.risk_score,
            "confidence_level": snapshot.result.confidence_level.value,
            "contributions": [(c.feature, c.weight) for c in detailed.contributions],
            "risk_factors": list(detailed.data.risk_factors) if detailed.data else [],
            "risk_summary": risk_map.summary.model_dump() if risk_map.summary else None,
            "recommendations": [
                {"category": g.category, "priority": g.priority} for g in (recommendations.data or [])
            ],
            "model_version": overview.model_info.version if overview.model_info else "unknown",
            "view_errors": {v.name: str(v.error) for v in views if v.error is not None},
        }

        try:
            average = ledger.average_risk_score()
        except EmptyInput:
            average = None
        report["history"] = {
            "total_predictions": ledger.total_predictions,
            "average_risk_score": average,
            "trend": [p.probability_percent for p in ledger.trend()],
        }

        if what_if is not None:
            feature, value = what_if
            try:
                panel.select_feature(feature)
                scenario = await panel.run(value)
            except (ValidationError, ScoringError) as e:
                report["what_if"] = {"feature": feature, "value": value, "error": str(e)}
            else:
                if scenario is not None:
                    report["what_if"] = {
                        "feature": feature,
                        "value": scenario.override_value,
                        "modified_prediction": scenario.modified_result.classification.value,
                        "probability_delta": scenario.probability_delta,
                        "outcome": classify_delta(scenario.probability_delta),
                    }

        report["duration_seconds"] = (datetime.now() - start_time).total_seconds()
        report["timestamp"] = start_time.isoformat()
        return report
    finally:
        for view in views:
            view.close()
        panel.close()
        if transport is not None:
            transport.close()


def main():
    """CLI entry point for a prediction session."""
    parser = argparse.ArgumentParser(description="Diabetes risk prediction session")
    parser.add_argument("--input", type=Path, required=True, help="JSON file with the five health metrics")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("configs/session_config.yaml"),
        help="Session config",
    )
    parser.add_argument(
        "--what-if",
        type=parse_what_if,
        default=None,
        metavar="FEATURE=VALUE",
        help="Probe the effect of changing one feature",
    )
    args = parser.parse_args()

    config = load_config(args.config if args.config.exists() else None)
    log_level = config.get("logging", {}).get("log_level", "INFO")
    logging.getLogger().setLevel(getattr(logging, log_level.upper(), logging.INFO))

    with open(args.input, "r") as f:
        record = json.load(f)

    logger.info(f"Scoring against: {config['api']['base_url']}")
    report = asyncio.run(run_session(record, config, what_if=args.what_if))

    logger.info(f"\n{'=' * 60}")
    logger.info("SESSION REPORT")
    logger.info(f"{'=' * 60}")
    logger.info(json.dumps(report, indent=2, default=str))

    if report["status"] != "success":
        logger.error(f"\nSession failed: {report.get('error', 'Unknown error')}")
        return 1

    logger.info(
        f"\nPrediction: {report['prediction']} "
        f"({report['probability']:.1%}, confidence {report['confidence_level']})"
    )
    if report.get("what_if") and "probability_delta" in report["what_if"]:
        logger.info(
            f"What-if {report['what_if']['feature']}: "
            f"{report['what_if']['probability_delta']:+.2%} ({report['what_if']['outcome']})"
        )
    return 0


if __name__ == "__main__":
    exit(main())
