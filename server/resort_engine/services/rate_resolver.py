"""Selection of the single rate rule that prices a request."""

import logging
from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from ..models.enums import DayOfWeek, ItemType
from ..models.rate import RateRule
from .rule_catalog import RuleCatalog
from .validation import parse_item_type, validate_nights

logger = logging.getLogger(__name__)


def rule_applies(
    rule: RateRule,
    item_type: ItemType,
    item_id: Optional[UUID],
    on_date: date,
    nights: int,
) -> bool:
    """Check every applicability filter of a rule against a request."""
    if not rule.is_active:
        return False

    if rule.applicable_item_type != item_type:
        return False

    if rule.applicable_item_id is not None and rule.applicable_item_id != item_id:
        return False

    # Both bounds inclusive, each optional
    if rule.start_date is not None and on_date < rule.start_date:
        return False
    if rule.end_date is not None and on_date > rule.end_date:
        return False

    if rule.days_of_week and DayOfWeek.for_weekday(on_date.weekday()) not in rule.days_of_week:
        return False

    if nights < rule.min_stay:
        return False
    if rule.max_stay is not None and nights > rule.max_stay:
        return False

    return True


def selection_key(rule: RateRule) -> tuple[int, int, str]:
    """
    Ordering under which the first rule wins.

    Highest priority first; among equal priorities a rule bound to a
    concrete resource beats a wildcard; remaining ties go to the lowest id.
    """
    return (-rule.priority, 0 if rule.is_specific else 1, str(rule.id))


def select_best(rules: Iterable[RateRule]) -> Optional[RateRule]:
    return min(rules, key=selection_key, default=None)


class RateResolver:
    """Filters the catalog to applicable rules and picks exactly one."""

    def __init__(self, catalog: RuleCatalog):
        self.catalog = catalog

    async def applicable_rules(
        self,
        item_type: ItemType | str,
        item_id: Optional[UUID],
        on_date: date,
        nights: int,
    ) -> list[RateRule]:
        """All active rules matching the request, best first."""
        item_type = parse_item_type(item_type)
        validate_nights(nights)

        candidates = await self.catalog.rules_for(item_type, item_id, active_only=True)
        matching = [
            rule for rule in candidates
            if rule_applies(rule, item_type, item_id, on_date, nights)
        ]
        return sorted(matching, key=selection_key)

    async def resolve(
        self,
        item_type: ItemType | str,
        item_id: Optional[UUID],
        on_date: date,
        nights: int,
    ) -> Optional[RateRule]:
        """
        Pick the rule that prices a stay.

        Args:
            item_type: Kind of resource
            item_id: Concrete resource, or None to price the type in general
            on_date: Target date, usually the first night
            nights: Stay length, at least 1

        Returns:
            The selected rule, or None when nothing applies

        Raises:
            DomainValidationError: INVALID_ITEM_TYPE or INVALID_NIGHTS
        """
        matching = await self.applicable_rules(item_type, item_id, on_date, nights)
        rule = matching[0] if matching else None

        logger.info(
            "Rate resolved" if rule else "No applicable rate",
            extra={
                "item_type": ItemType(item_type).value,
                "item_id": str(item_id) if item_id else None,
                "date": on_date.isoformat(),
                "nights": nights,
                "candidate_count": len(matching),
                "rate_id": str(rule.id) if rule else None,
            }
        )
        return rule
