# ==============================================================================
# Repository Abstract Base Classes
# ==============================================================================
"""
Repository ABCs for the remote blog store.

These define the "what" (read promotions, bump counters) not the "how"
(SQL, REST). Concrete implementations in infrastructure/ handle the specifics.

Includes:
- PromotionRepository: Promotion reads and admin writes
- AnalyticsRepository: Post/promotion aggregates and the engagement event log

Note: KeyValueStore lives in storage.py since it models browser storage,
not a collection of domain objects.
"""

from abc import ABC, abstractmethod

from blogengage.core.models import (
    AnalyticsIncrement,
    EngagementEvent,
    PostAnalytics,
    Promotion,
    PromotionAnalytics,
    SessionStart,
)


class PromotionRepository(ABC):
    """Repository for promotions."""

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the data store."""
        ...

    @abstractmethod
    def list_promotions(self) -> list[Promotion]:
        """
        List all promotions, newest first.

        Returns:
            Promotions ordered by created_at descending
        """
        ...

    @abstractmethod
    def list_active(self) -> list[Promotion]:
        """
        List promotions with is_active set.

        Returns:
            Active promotions ordered by created_at descending. Page, date
            and frequency rules are NOT applied here.
        """
        ...

    @abstractmethod
    def create(self, promotion: Promotion) -> Promotion:
        """Insert a promotion and return it with its assigned id."""
        ...

    @abstractmethod
    def update(self, promotion: Promotion) -> Promotion | None:
        """Overwrite an existing promotion by id; None if it does not exist."""
        ...

    @abstractmethod
    def set_active(self, promotion_id: str, is_active: bool) -> Promotion | None:
        """Toggle a promotion; returns None if it does not exist."""
        ...

    @abstractmethod
    def delete(self, promotion_id: str) -> bool:
        """Delete a promotion; returns True if a row was removed."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close connection and release resources."""
        ...


class AnalyticsRepository(ABC):
    """Repository for engagement aggregates."""

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the data store."""
        ...

    @abstractmethod
    def increment_post(self, post_id: str, increment: AnalyticsIncrement) -> PostAnalytics:
        """
        Apply counter deltas to a post aggregate, creating it if absent.

        Args:
            post_id: Post identifier
            increment: Counter deltas

        Returns:
            The updated aggregate with recomputed rates
        """
        ...

    @abstractmethod
    def increment_promotion(
        self, promotion_id: str, increment: AnalyticsIncrement
    ) -> PromotionAnalytics:
        """
        Apply counter deltas to a promotion aggregate, creating it if absent.

        Args:
            promotion_id: Promotion identifier
            increment: Counter deltas

        Returns:
            The updated aggregate with recomputed rates
        """
        ...

    @abstractmethod
    def record_event(self, event: EngagementEvent) -> None:
        """Append an enriched engagement event to the event log."""
        ...

    @abstractmethod
    def record_session(self, start: SessionStart) -> None:
        """
        Record the first contact of a visitor session.

        Writing the same session id again is a no-op.
        """
        ...

    @abstractmethod
    def list_post_analytics(self) -> list[PostAnalytics]:
        """List post aggregates, most viewed first."""
        ...

    @abstractmethod
    def list_promotion_analytics(self) -> list[PromotionAnalytics]:
        """List promotion aggregates, most viewed first."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close connection and release resources."""
        ...
