"""Local mirror of the scoring service's prediction log."""

import logging
from typing import List, Optional, Tuple

from src.analytics.aggregate import (
    average_risk_score,
    build_trend_series,
    classification_distribution,
    latest_classification,
)
from src.client.scoring_client import ScoringClient
from src.config.constants import DEFAULT_HISTORY_LIMIT
from src.data.schemas import Classification, HistoryEntry, HistoryPage, TrendPoint
from src.session.store import SessionStore
from src.session.views import RevisionBoundView

logger = logging.getLogger(__name__)


class HistoryLedger(RevisionBoundView):
    """Read-through mirror of the remote, append-only prediction log.

    The mirror is only ever replaced wholesale by ``refresh`` or emptied
    through ``clear``; entries are never edited locally. Each commit in the
    session store triggers a refresh, although the new prediction may not
    be visible in the log straight away.
    """

    name = "history"
    requires_input = False

    def __init__(self, store: SessionStore, client: ScoringClient, limit: int = DEFAULT_HISTORY_LIMIT):
        super().__init__(store, client)
        self.limit = limit

    async def fetch(self, snapshot):
        return await self.client.read_history(self.limit)

    async def refresh(self, limit: Optional[int] = None) -> bool:
        """Re-read the remote log and replace the mirror.

        Args:
            limit: Maximum number of recent entries to keep; defaults to
                the limit given at construction

        Returns:
            True if the mirror was replaced
        """
        if limit is not None:
            self.limit = limit
        updated = await super().refresh()
        if updated:
            logger.info(f"History mirror holds {len(self.entries)} of {self.total_predictions} predictions")
        return updated

    async def clear(self) -> bool:
        """Clear the remote log, then refresh the mirror."""
        await self.client.clear_history()
        return await self.refresh()

    @property
    def page(self) -> Optional[HistoryPage]:
        return self.data

    @property
    def entries(self) -> Tuple[HistoryEntry, ...]:
        if self.data is None:
            return ()
        return tuple(self.data.recent_predictions)

    @property
    def total_predictions(self) -> int:
        return self.data.total_predictions if self.data is not None else 0

    @property
    def is_empty(self) -> bool:
        return self.total_predictions == 0

    def trend(self) -> List[TrendPoint]:
        return build_trend_series(self.entries)

    def average_risk_score(self) -> float:
        """Mean risk percentage of the mirrored entries.

        Raises:
            EmptyInput: If the mirror holds no entries
        """
        return average_risk_score(self.entries)

    def latest_classification(self) -> Optional[Classification]:
        return latest_classification(self.entries)

    def distribution(self) -> dict:
        return classification_distribution(self.entries)
