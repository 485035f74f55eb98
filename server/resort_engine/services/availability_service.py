"""Combined availability and pricing decisions."""

import logging
import math
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from ..core.exceptions import NoApplicableRateError
from ..core.observability import metrics_collector
from ..models.enums import AllocationStatus, ItemType
from ..schemas.availability import (
    AppliedModifierLine,
    AvailabilityRequest,
    AvailabilityResult,
    ConflictSummary,
    PricingResult,
)
from .interval_conflicts import IntervalConflictDetector, blocked_dates_for, validate_interval
from .modifier_engine import ZERO, ModifierEngine, round_money
from .rate_resolver import RateResolver
from .rule_catalog import RuleCatalog
from .validation import (
    parse_item_type,
    parse_optional_uuid,
    parse_uuid,
    validate_nights,
    validate_party_size,
)

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def stay_length_nights(start: datetime, end: datetime) -> int:
    """Interval length in days, rounded up, never below one."""
    seconds = (end - start).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


class AvailabilityPricingFacade:
    """
    Answers "is this resource free, and what would it cost" in one call.

    Conflict detection runs first; pricing runs whether or not the resource
    is available so callers can show a price next to a conflict.
    """

    def __init__(
        self,
        detector: IntervalConflictDetector,
        catalog: RuleCatalog,
        resolver: RateResolver,
        engine: ModifierEngine,
        default_currency: str = "USD",
        strict: bool = False,
    ):
        self.detector = detector
        self.catalog = catalog
        self.resolver = resolver
        self.engine = engine
        self.default_currency = default_currency
        self.strict = strict

    async def evaluate(self, request: AvailabilityRequest) -> AvailabilityResult:
        """
        Check availability and price an interval.

        Args:
            request: Resource, interval and party size to evaluate

        Returns:
            Availability flag, conflicting allocations, blocked dates inside
            the interval and the price

        Raises:
            DomainValidationError: For malformed ids, an unknown item type,
                an empty interval or a party size below one
            NoApplicableRateError: In strict mode when no rule applies
        """
        resource_id = parse_uuid(request.resource_id, "resource_id")
        item_id = parse_optional_uuid(request.item_id, "item_id") or resource_id
        exclude_id = parse_optional_uuid(request.exclude_allocation_id, "exclude_allocation_id")
        item_type = parse_item_type(request.item_type)
        start, end = validate_interval(request.start, request.end)
        validate_party_size(request.party_size)

        conflicts = await self.detector.find_conflicts(
            resource_id,
            start,
            end,
            exclude_allocation_id=exclude_id,
        )
        available = not conflicts

        # Rules match the check-in date as the caller wrote it, not its UTC date
        pricing = await self.resolve_rate(
            item_type, item_id, request.start.date(), stay_length_nights(start, end)
        )

        metrics_collector.record_availability_check(item_type.value, available)

        logger.info(
            "Availability evaluated",
            extra={
                "resource_id": str(resource_id),
                "item_type": item_type.value,
                "start": start.isoformat(),
                "end": end.isoformat(),
                "party_size": request.party_size,
                "available": available,
                "conflict_count": len(conflicts),
                "total_price": str(pricing.total_price),
                "applied_rule_id": pricing.applied_rule_id,
            }
        )

        return AvailabilityResult(
            available=available,
            conflicts=[
                ConflictSummary(
                    id=str(allocation.id),
                    starts_at=allocation.starts_at,
                    ends_at=allocation.ends_at,
                    status=AllocationStatus(allocation.status).value,
                )
                for allocation in sorted(conflicts, key=lambda a: a.starts_at)
            ],
            blocked_dates=blocked_dates_for(conflicts, start, end),
            pricing=pricing,
        )

    async def resolve_rate(
        self,
        item_type: ItemType | str,
        item_id: Optional[UUID],
        on_date: date,
        nights: int,
    ) -> PricingResult:
        """
        Quote a stay without checking availability.

        The base price of the selected rule is multiplied by the number of
        nights and then run through the rule's modifiers in their stored
        order. With no applicable rule the quote is zero unless strict mode
        is on.

        Raises:
            DomainValidationError: INVALID_ITEM_TYPE or INVALID_NIGHTS
            NoApplicableRateError: In strict mode when no rule applies
        """
        item_type = parse_item_type(item_type)
        validate_nights(nights)

        rule = await self.resolver.resolve(item_type, item_id, on_date, nights)
        metrics_collector.record_rate_resolution(item_type.value, matched=rule is not None)

        if rule is None:
            if self.strict:
                raise NoApplicableRateError(
                    item_type=item_type.value,
                    item_id=str(item_id) if item_id else None,
                    on_date=on_date.isoformat(),
                    nights=nights,
                )
            return PricingResult(
                base_price=round_money(ZERO),
                modifiers=[],
                total_price=round_money(ZERO),
                currency=self.default_currency,
                applied_rule_id=None,
                nights=nights,
            )

        base_total = Decimal(str(rule.base_price)) * nights
        modifiers = await self.catalog.modifiers_for(rule)
        total, steps = self.engine.breakdown(base_total, modifiers)

        metrics_collector.record_quote(rule.currency, float(total))

        return PricingResult(
            base_price=round_money(base_total),
            modifiers=[
                AppliedModifierLine(
                    name=step.name,
                    type=step.modifier_type.value,
                    value=step.value,
                    amount=round_money(step.amount),
                )
                for step in steps
            ],
            total_price=total,
            currency=rule.currency,
            applied_rule_id=str(rule.id),
            nights=nights,
        )
