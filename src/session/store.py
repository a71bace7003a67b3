"""Session state store: the single canonical prediction and its revision."""

import asyncio
import logging
from typing import Any, Callable, List, Mapping, NamedTuple, Optional

from src.client.scoring_client import ScoringClient
from src.data.schemas import PredictionInput, PredictionResult
from src.data.validate_input import validate
from src.errors import ScoringError, ValidationError

logger = logging.getLogger(__name__)


class SessionSnapshot(NamedTuple):
    input: PredictionInput
    result: PredictionResult
    revision: int


Subscriber = Callable[[int, SessionSnapshot], None]


class SessionStore:
    """Owns the canonical (input, result, revision) triple.

    Commits run one at a time. Subscribers are called synchronously after
    every successful commit and use the revision to decide whether their
    own derived data needs re-fetching.
    """

    def __init__(
        self,
        client: ScoringClient,
        validator: Callable[[Mapping[str, Any]], PredictionInput] = validate,
    ):
        self.client = client
        self.validator = validator
        self._snapshot: Optional[SessionSnapshot] = None
        self._revision = 0
        self._subscribers: List[Subscriber] = []
        self._commit_lock = asyncio.Lock()

    @property
    def revision(self) -> int:
        return self._revision

    def current(self) -> Optional[SessionSnapshot]:
        """Return the canonical snapshot, or None before the first commit."""
        return self._snapshot

    def is_current(self, revision: int) -> bool:
        return revision == self._revision

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a commit listener.

        Args:
            callback: Called with (revision, snapshot) after each commit

        Returns:
            Function that removes the listener
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def commit(self, candidate: Mapping[str, Any]) -> SessionSnapshot:
        """Validate, score and install a new canonical pair.

        On any failure the previous pair and revision stay in place and the
        error propagates to the caller.

        Args:
            candidate: Raw health metrics

        Returns:
            The newly installed snapshot

        Raises:
            ValidationError: Candidate rejected locally; nothing was sent
            TransportError, ServiceError: Scoring failed
        """
        async with self._commit_lock:
            try:
                prediction_input = self.validator(candidate)
            except ValidationError as e:
                logger.warning(f"Input rejected: {e}")
                raise

            try:
                result = await self.client.predict(prediction_input)
            except ScoringError as e:
                logger.error(f"Prediction failed, keeping revision {self._revision}: {e}")
                raise

            self._revision += 1
            self._snapshot = SessionSnapshot(prediction_input, result, self._revision)
            logger.info(
                f"Committed revision {self._revision}: {result.classification.value} "
                f"(probability={result.probability:.4f})"
            )

            snapshot = self._snapshot
            for callback in list(self._subscribers):
                try:
                    callback(snapshot.revision, snapshot)
                except Exception as e:
                    logger.exception(f"Subscriber {callback!r} failed on revision {snapshot.revision}: {e}")

            return snapshot
