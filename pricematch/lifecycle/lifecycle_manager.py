"""
Review lifecycle for matches and recommendations.

Two independent state machines:

    Match:           AUTO_MATCHED | PENDING --confirm--> CONFIRMED
                     AUTO_MATCHED | PENDING --reject---> REJECTED
    Recommendation:  PENDING --apply---> APPLIED
                     PENDING --dismiss-> DISMISSED

Terminal states are only left through the explicit reset actions, which
return the record to PENDING and are recorded in the audit log as resets.
"""

import logging
from typing import Dict, List, Optional

from pricematch.error_handling import InvalidTransitionError
from pricematch.models import (
    AuditEntry,
    Match,
    MatchStatus,
    PriceUpdateRequest,
    ProductRecommendation,
    RecommendationStatus,
)
from pricematch.repository import CatalogRepository


logger = logging.getLogger(__name__)


class LifecycleManager:
    """
    Applies reviewer actions to matches and recommendations.

    Every accepted action is appended to audit_log. Rejected actions
    raise InvalidTransitionError and leave the record untouched.

    Attributes:
        catalog: Catalog collaborator receiving price updates on apply
        audit_log: Status changes in the order they happened
    """

    MATCH_ACTIONS: Dict[str, MatchStatus] = {
        'confirm': MatchStatus.CONFIRMED,
        'reject': MatchStatus.REJECTED,
    }

    RECOMMENDATION_ACTIONS: Dict[str, RecommendationStatus] = {
        'apply': RecommendationStatus.APPLIED,
        'dismiss': RecommendationStatus.DISMISSED,
    }

    def __init__(self, catalog: Optional[CatalogRepository] = None):
        self.catalog = catalog
        self.audit_log: List[AuditEntry] = []

    # Matches

    def confirm(self, match: Match) -> Match:
        return self._transition_match(match, 'confirm')

    def reject(self, match: Match) -> Match:
        return self._transition_match(match, 'reject')

    def reset_match(self, match: Match, reason: Optional[str] = None) -> Match:
        """
        Return a confirmed or rejected match to PENDING.

        Args:
            match: Match in a terminal state
            reason: Why the reviewer decision is being cleared

        Returns:
            The same match, now PENDING

        Raises:
            InvalidTransitionError: If the match is not terminal
        """
        if not match.status.is_terminal:
            raise InvalidTransitionError('match', match.id, match.status.value, 'reset')
        previous = match.status
        match.status = MatchStatus.PENDING
        self._audit('match', match.id, 'reset', previous.value, match.status.value, reason)
        return match

    # Recommendations

    def apply(self, recommendation: ProductRecommendation) -> ProductRecommendation:
        """
        Apply a recommendation and send its price to the catalog.

        The price update is sent before the status changes; if the catalog
        raises, the error propagates and the recommendation stays PENDING.

        Args:
            recommendation: PENDING recommendation

        Returns:
            The same recommendation, now APPLIED

        Raises:
            InvalidTransitionError: If the recommendation is not PENDING
            ValueError: If no catalog repository is configured
        """
        self._check_recommendation(recommendation, 'apply')
        if self.catalog is None:
            raise ValueError("Cannot apply recommendation: no catalog repository configured")

        request = PriceUpdateRequest(
            product_id=recommendation.product_id,
            new_price=recommendation.recommended_price,
        )
        self.catalog.update_price(request)
        return self._set_recommendation_status(recommendation, 'apply')

    def dismiss(self, recommendation: ProductRecommendation) -> ProductRecommendation:
        self._check_recommendation(recommendation, 'dismiss')
        return self._set_recommendation_status(recommendation, 'dismiss')

    def reset_recommendation(
        self,
        recommendation: ProductRecommendation,
        reason: Optional[str] = None
    ) -> ProductRecommendation:
        """Return an applied or dismissed recommendation to PENDING.

        Resetting an applied recommendation does not revert the catalog price.

        Raises:
            InvalidTransitionError: If the recommendation is not terminal
        """
        if not recommendation.status.is_terminal:
            raise InvalidTransitionError(
                'recommendation', recommendation.product_id, recommendation.status.value, 'reset'
            )
        previous = recommendation.status
        recommendation.status = RecommendationStatus.PENDING
        self._audit(
            'recommendation', recommendation.product_id, 'reset',
            previous.value, recommendation.status.value, reason
        )
        return recommendation

    def history(self, record_id: str) -> List[AuditEntry]:
        """Audit entries for one match id or recommendation product id."""
        return [entry for entry in self.audit_log if entry.record_id == record_id]

    def _transition_match(self, match: Match, action: str) -> Match:
        if match.status.is_terminal:
            raise InvalidTransitionError('match', match.id, match.status.value, action)
        previous = match.status
        match.status = self.MATCH_ACTIONS[action]
        self._audit('match', match.id, action, previous.value, match.status.value)
        return match

    def _check_recommendation(self, recommendation: ProductRecommendation, action: str) -> None:
        if recommendation.status != RecommendationStatus.PENDING:
            raise InvalidTransitionError(
                'recommendation', recommendation.product_id, recommendation.status.value, action
            )

    def _set_recommendation_status(
        self,
        recommendation: ProductRecommendation,
        action: str
    ) -> ProductRecommendation:
        previous = recommendation.status
        recommendation.status = self.RECOMMENDATION_ACTIONS[action]
        self._audit(
            'recommendation', recommendation.product_id, action,
            previous.value, recommendation.status.value
        )
        return recommendation

    def _audit(
        self,
        record_type: str,
        record_id: str,
        action: str,
        from_status: str,
        to_status: str,
        reason: Optional[str] = None
    ) -> None:
        entry = AuditEntry(
            record_type=record_type,
            record_id=record_id,
            action=action,
            from_status=from_status,
            to_status=to_status,
            reason=reason,
        )
        self.audit_log.append(entry)
        if action == 'reset':
            logger.warning(
                f"Reset {record_type} {record_id}: {from_status} -> {to_status}"
                f" (reason: {reason or 'none given'})"
            )
        else:
            logger.info(f"{action} {record_type} {record_id}: {from_status} -> {to_status}")
