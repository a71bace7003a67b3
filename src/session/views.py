"""Dependent views that re-derive their data from the session store."""

import asyncio
import logging
from typing import Any, List, Optional, Set, Tuple

from src.analytics.aggregate import (
    contributions_from_mapping,
    order_recommendations,
    rank_contributions,
    rank_endpoint_usage,
    rank_feature_importance,
    risk_tiers_from_assessment,
    summarize_risk_tiers,
)
from src.client.scoring_client import ScoringClient
from src.data.schemas import (
    DetailedPrediction,
    FeatureContribution,
    FeatureImportance,
    ModelInfo,
    RecommendationGroup,
    RiskSummary,
    RiskTier,
    UsageStats,
)
from src.errors import ScoringError
from src.session.store import SessionSnapshot, SessionStore

logger = logging.getLogger(__name__)


class RevisionBoundView:
    """Base class for views fed by their own scoring service fetch.

    Every fetch is stamped with the store revision active when it was
    issued. If the store has moved on by the time the response (or
    failure) arrives, the response is dropped and the view is left as is.

    Subclasses implement ``fetch`` and optionally ``derive``.
    """

    name = "view"
    # Views that need a committed input skip refreshing until one exists
    requires_input = True
    # Input-independent views neither subscribe nor check staleness
    revision_bound = True

    def __init__(self, store: SessionStore, client: ScoringClient):
        self.store = store
        self.client = client
        self.data: Any = None
        self.error: Optional[ScoringError] = None
        self.revision: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribe = store.subscribe(self._on_commit) if self.revision_bound else None

    async def fetch(self, snapshot: Optional[SessionSnapshot]) -> Any:
        raise NotImplementedError

    def derive(self, raw: Any) -> Any:
        return raw

    def _on_commit(self, revision: int, snapshot: SessionSnapshot):
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _is_stale(self, revision: int) -> bool:
        return self.revision_bound and not self.store.is_current(revision)

    async def refresh(self) -> bool:
        """Fetch data for the current revision.

        Returns:
            True if the view was updated, False if there was nothing to
            fetch, the fetch failed or the response went stale
        """
        revision = self.store.revision
        snapshot = self.store.current()
        if self.requires_input and snapshot is None:
            return False

        try:
            raw = await self.fetch(snapshot)
        except ScoringError as e:
            if self._is_stale(revision):
                logger.debug(f"{self.name}: dropping failure for stale revision {revision}")
                return False
            logger.warning(f"{self.name}: refresh failed for revision {revision}: {e}")
            self.data = None
            self.error = e
            self.revision = revision
            return False

        if self._is_stale(revision):
            logger.debug(
                f"{self.name}: dropping response for revision {revision}, "
                f"store is at {self.store.revision}"
            )
            return False

        self.data = self.derive(raw)
        self.error = None
        self.revision = revision
        return True

    async def wait_idle(self):
        """Wait for refreshes scheduled by commits to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def close(self):
        if self._unsubscribe is not None:
            self._unsubscribe()


class DetailedAnalysisView(RevisionBoundView):
    name = "detailed_analysis"

    async def fetch(self, snapshot):
        return await self.client.predict_detailed(snapshot.input)

    @property
    def contributions(self) -> List[FeatureContribution]:
        if self.data is None:
            return []
        detailed: DetailedPrediction = self.data
        return rank_contributions(contributions_from_mapping(detailed.feature_contributions))


class RiskMapView(RevisionBoundView):
    name = "risk_map"

    async def fetch(self, snapshot):
        return await self.client.assess_risk(snapshot.input)

    def derive(self, raw) -> List[RiskTier]:
        return risk_tiers_from_assessment(raw)

    @property
    def summary(self) -> Optional[RiskSummary]:
        if self.data is None:
            return None
        return summarize_risk_tiers(self.data)


class RecommendationsView(RevisionBoundView):
    name = "recommendations"

    async def fetch(self, snapshot):
        return await self.client.recommend(snapshot.input)

    def derive(self, raw) -> List[RecommendationGroup]:
        return order_recommendations(raw)


class ModelOverviewView(RevisionBoundView):
    """Model metadata and API usage; usage counters move with every commit."""

    name = "model_overview"
    requires_input = False

    async def fetch(self, snapshot):
        info, stats = await asyncio.gather(self.client.model_info(), self.client.usage_stats())
        return info, stats

    @property
    def model_info(self) -> Optional[ModelInfo]:
        return self.data[0] if self.data else None

    @property
    def usage_stats(self) -> Optional[UsageStats]:
        return self.data[1] if self.data else None

    @property
    def endpoint_ranking(self) -> List[Tuple[str, int]]:
        if not self.data:
            return []
        return rank_endpoint_usage(self.data[1])


class FeatureImportanceView(RevisionBoundView):
    name = "feature_importance"
    requires_input = False
    revision_bound = False

    async def fetch(self, snapshot):
        return await self.client.feature_importance()

    def derive(self, raw) -> List[FeatureImportance]:
        return rank_feature_importance(raw)

    async def load(self) -> bool:
        return await self.refresh()
