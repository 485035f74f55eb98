"""Read-only view over persisted rate rules and their modifiers."""

import logging
from typing import Optional
from uuid import UUID

from ..models.enums import ItemType
from ..models.rate import RateModifier, RateRule
from ..repositories.base import RateRepository

logger = logging.getLogger(__name__)


class RuleCatalog:
    """Queries rate rules by item type, item id and activity flag."""

    def __init__(self, rates: RateRepository):
        self.rates = rates

    async def rules_for(
        self,
        item_type: ItemType,
        item_id: Optional[UUID] = None,
        active_only: bool = True,
    ) -> list[RateRule]:
        """
        Rules that could price a resource: those bound to ``item_id`` plus
        the wildcard rules of the type.
        """
        rules = await self.rates.list_rules(
            item_type=item_type,
            item_id=item_id,
            include_wildcards=True,
            active_only=active_only,
        )
        logger.debug(
            "Loaded candidate rate rules",
            extra={
                "item_type": ItemType(item_type).value,
                "item_id": str(item_id) if item_id else None,
                "active_only": active_only,
                "rule_count": len(rules),
            }
        )
        return rules

    async def modifiers_for(self, rule: RateRule) -> list[RateModifier]:
        """Modifiers of a rule in the order they are applied."""
        return await self.rates.list_modifiers(rule.id)
