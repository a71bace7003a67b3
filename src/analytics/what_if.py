"""What-if analysis: single-feature counterfactuals against the baseline."""

import logging
from typing import Any, Callable, Mapping, Optional

from src.client.scoring_client import ScoringClient
from src.config.constants import REQUIRED_COLUMNS
from src.data.schemas import ConfidenceLevel, PredictionInput, PredictionResult, WhatIfScenario
from src.data.validate_input import validate
from src.errors import InvalidFeature, ScoringError, SessionError
from src.session.store import SessionSnapshot, SessionStore

logger = logging.getLogger(__name__)

IMPROVEMENT = "improvement"
WORSENED = "worsened"
UNCHANGED = "unchanged"


def classify_delta(delta: float) -> str:
    """Negative delta lowers diabetes probability (improvement)."""
    if delta < 0:
        return IMPROVEMENT
    if delta > 0:
        return WORSENED
    return UNCHANGED


def confidence_for_probability(probability: float) -> ConfidenceLevel:
    # Same banding the scoring service applies to /predict results
    if probability < 0.3 or probability > 0.7:
        return ConfidenceLevel.HIGH
    if probability < 0.4 or probability > 0.6:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


class WhatIfEngine:
    """Computes what-if scenarios through the remote ``/what_if`` operation."""

    def __init__(
        self,
        client: ScoringClient,
        validator: Callable[[Mapping[str, Any]], PredictionInput] = validate,
    ):
        self.client = client
        self.validator = validator

    async def evaluate(
        self,
        baseline_input: PredictionInput,
        baseline_result: PredictionResult,
        feature: str,
        new_value: Any,
    ) -> WhatIfScenario:
        """Score the baseline with exactly one feature replaced.

        Args:
            baseline_input: Committed input
            baseline_result: Result committed alongside ``baseline_input``
            feature: Name of the feature to override
            new_value: Replacement value

        Returns:
            WhatIfScenario with ``probability_delta`` equal to modified
            minus baseline probability

        Raises:
            InvalidFeature: ``feature`` is not a model feature
            ValidationError: The modified input is invalid; nothing was sent
            TransportError, ServiceError: Scoring failed
        """
        if feature not in REQUIRED_COLUMNS:
            raise InvalidFeature(feature, REQUIRED_COLUMNS)

        candidate = baseline_input.model_dump()
        candidate[feature] = new_value
        modified_input = self.validator(candidate)
        override_value = getattr(modified_input, feature)

        comparison = await self.client.what_if(baseline_input, feature, override_value)

        probability = comparison.modified_probability
        modified_result = PredictionResult(
            classification=comparison.modified_prediction,
            probability=probability,
            risk_score=round(probability * 100, 2),
            confidence_level=confidence_for_probability(probability),
        )
        delta = round(modified_result.probability - baseline_result.probability, 4)

        return WhatIfScenario(
            baseline_input=baseline_input,
            override_feature=feature,
            override_value=override_value,
            baseline_result=baseline_result,
            modified_result=modified_result,
            probability_delta=delta,
        )


class WhatIfPanel:
    """Holds the transient scenario for the current session revision.

    The scenario is discarded when the selected feature changes or a new
    prediction is committed. A response that lands after either event is
    dropped.
    """

    def __init__(self, store: SessionStore, engine: WhatIfEngine, feature: str = "Glucose"):
        if feature not in REQUIRED_COLUMNS:
            raise InvalidFeature(feature, REQUIRED_COLUMNS)
        self.store = store
        self.engine = engine
        self.selected_feature = feature
        self.scenario: Optional[WhatIfScenario] = None
        self._generation = 0
        self._unsubscribe = store.subscribe(self._on_commit)

    def _on_commit(self, revision: int, snapshot: SessionSnapshot):
        self._discard()

    def _discard(self):
        self.scenario = None
        self._generation += 1

    def select_feature(self, feature: str):
        if feature not in REQUIRED_COLUMNS:
            raise InvalidFeature(feature, REQUIRED_COLUMNS)
        if feature != self.selected_feature:
            self.selected_feature = feature
            self._discard()

    @property
    def outcome(self) -> Optional[str]:
        if self.scenario is None:
            return None
        return classify_delta(self.scenario.probability_delta)

    async def run(self, new_value: Any) -> Optional[WhatIfScenario]:
        """Evaluate ``new_value`` for the selected feature.

        Returns:
            The scenario, or None if it went stale while in flight
        """
        snapshot = self.store.current()
        if snapshot is None:
            raise SessionError("No prediction committed yet")

        generation = self._generation
        feature = self.selected_feature

        try:
            scenario = await self.engine.evaluate(snapshot.input, snapshot.result, feature, new_value)
        except ScoringError:
            if self._is_stale(generation, snapshot.revision):
                logger.debug(f"Dropping what-if failure for stale revision {snapshot.revision}")
                return None
            raise

        if self._is_stale(generation, snapshot.revision):
            logger.debug(f"Dropping what-if result for {feature} at stale revision {snapshot.revision}")
            return None

        self.scenario = scenario
        logger.info(
            f"What-if {feature}={scenario.override_value}: "
            f"delta {scenario.probability_delta:+.4f} ({classify_delta(scenario.probability_delta)})"
        )
        return scenario

    def _is_stale(self, generation: int, revision: int) -> bool:
        return generation != self._generation or not self.store.is_current(revision)

    def close(self):
        self._unsubscribe()
