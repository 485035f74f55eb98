"""Rate administration: rule and modifier CRUD, statistics and reference lists."""

import logging
from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from ..core.exceptions import DomainValidationError, NotFoundError
from ..models.enums import DayOfWeek, ItemType, ModifierType, RateType
from ..models.rate import RateModifier, RateRule
from ..repositories.base import RateRepository
from ..schemas.rate import (
    AddModifierRequest,
    CreateRateRequest,
    ListRatesRequest,
    RateReference,
    RateStats,
    UpdateRateRequest,
)
from .modifier_engine import ZERO, round_money, validate_modifier_value
from .validation import parse_item_type, parse_optional_uuid, parse_uuid, validate_currency

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500


def validate_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if len(name) < MIN_NAME_LENGTH:
        raise DomainValidationError(
            code="INVALID_NAME",
            detail=f"Name must be at least {MIN_NAME_LENGTH} characters",
            field="name",
        )
    if len(name) > MAX_NAME_LENGTH:
        raise DomainValidationError(
            code="INVALID_NAME",
            detail=f"Name cannot exceed {MAX_NAME_LENGTH} characters",
            field="name",
        )
    return name


def validate_description(description: Optional[str]) -> str:
    description = (description or "").strip()
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise DomainValidationError(
            code="INVALID_DESCRIPTION",
            detail=f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters",
            field="description",
        )
    return description


def validate_rate_type(rate_type: Optional[str]) -> RateType:
    try:
        return RateType(rate_type)
    except ValueError:
        raise DomainValidationError(
            code="INVALID_RATE_TYPE",
            detail=f"Invalid rate type: {rate_type}",
            field="rate_type",
        ) from None


def validate_base_price(price: Optional[Decimal]) -> Decimal:
    if price is None or not Decimal(price).is_finite() or price < ZERO:
        raise DomainValidationError(
            code="INVALID_BASE_PRICE",
            detail="Base price must be a non-negative number",
            field="base_price",
        )
    price = Decimal(price)
    if price != round_money(price):
        raise DomainValidationError(
            code="INVALID_BASE_PRICE",
            detail="Base price cannot have more than two decimal places",
            field="base_price",
        )
    return round_money(price)


def validate_date_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise DomainValidationError(
            code="INVALID_DATE_RANGE",
            detail="Start date must not be after end date",
            field="start_date",
        )


def validate_days_of_week(days: Optional[list[str]]) -> list[str]:
    normalized = []
    for day in days or []:
        try:
            normalized.append(DayOfWeek(str(day).lower()).value)
        except ValueError:
            raise DomainValidationError(
                code="INVALID_DAY_OF_WEEK",
                detail=f"Invalid day of week: {day}",
                field="days_of_week",
            ) from None
    # Keep weekday order, drop duplicates
    order = [d.value for d in DayOfWeek]
    return sorted(set(normalized), key=order.index)


def validate_stay_limits(min_stay: Optional[int], max_stay: Optional[int]) -> None:
    if min_stay is None or min_stay < 1:
        raise DomainValidationError(
            code="INVALID_MIN_STAY",
            detail="Minimum stay must be at least 1",
            field="min_stay",
        )
    if max_stay is not None:
        if max_stay < 1:
            raise DomainValidationError(
                code="INVALID_MAX_STAY",
                detail="Maximum stay must be at least 1",
                field="max_stay",
            )
        if max_stay < min_stay:
            raise DomainValidationError(
                code="INVALID_STAY_RANGE",
                detail="Maximum stay cannot be less than minimum stay",
                field="max_stay",
            )


class RateService:
    """Service for rate rule administration."""

    def __init__(
        self,
        rates: RateRepository,
        supported_currencies: list[str],
        default_currency: str = "USD",
    ):
        self.rates = rates
        self.supported_currencies = supported_currencies
        self.default_currency = default_currency

    async def create_rate(self, request: CreateRateRequest) -> RateRule:
        """
        Validate and persist a new rate rule.

        Raises:
            DomainValidationError: With the code of the first failed check
        """
        name = validate_name(request.name)
        description = validate_description(request.description)
        rate_type = validate_rate_type(request.rate_type)
        base_price = validate_base_price(request.base_price)
        currency = validate_currency(request.currency or self.default_currency, self.supported_currencies)
        item_type = parse_item_type(request.applicable_item_type)
        item_id = parse_optional_uuid(request.applicable_item_id, "applicable_item_id")
        validate_date_range(request.start_date, request.end_date)
        days_of_week = validate_days_of_week(request.days_of_week)
        validate_stay_limits(request.min_stay, request.max_stay)

        rule = RateRule(
            name=name,
            description=description,
            rate_type=rate_type.value,
            base_price=base_price,
            currency=currency,
            applicable_item_type=item_type.value,
            applicable_item_id=item_id,
            start_date=request.start_date,
            end_date=request.end_date,
            days_of_week=days_of_week,
            min_stay=request.min_stay,
            max_stay=request.max_stay,
            priority=request.priority,
            is_active=request.is_active,
        )
        rule = await self.rates.add(rule)

        logger.info(
            "Rate rule created",
            extra={
                "rate_id": str(rule.id),
                "rule_name": rule.name,
                "rate_type": rate_type.value,
                "item_type": item_type.value,
                "item_id": str(item_id) if item_id else None,
                "priority": rule.priority,
            }
        )
        return rule

    async def get_rate(self, rate_id: UUID | str) -> RateRule:
        """
        Get a rate rule by ID.

        Raises:
            DomainValidationError: INVALID_ID for a malformed id
            NotFoundError: RATE_NOT_FOUND
        """
        rate_id = parse_uuid(rate_id, "rate_id")
        rule = await self.rates.get(rate_id)
        if not rule:
            raise NotFoundError(resource_type="rate", resource_id=str(rate_id), code="RATE_NOT_FOUND")
        return rule

    async def update_rate(self, request: UpdateRateRequest) -> RateRule:
        """
        Apply a partial update.

        Every field is validated on its own before the rule is loaded; date
        and stay bounds are then re-validated against the stored values when
        only one side of a pair changes.
        """
        rate_id = parse_uuid(request.rate_id, "rate_id")
        changes: dict[str, Any] = request.model_dump(exclude_unset=True)
        changes.pop("rate_id", None)

        updates: dict[str, Any] = {}
        if "name" in changes:
            updates["name"] = validate_name(changes["name"])
        if "description" in changes:
            updates["description"] = validate_description(changes["description"])
        if "rate_type" in changes:
            updates["rate_type"] = validate_rate_type(changes["rate_type"]).value
        if "base_price" in changes:
            updates["base_price"] = validate_base_price(changes["base_price"])
        if "currency" in changes:
            updates["currency"] = validate_currency(changes["currency"], self.supported_currencies)
        if "applicable_item_type" in changes:
            updates["applicable_item_type"] = parse_item_type(changes["applicable_item_type"]).value
        if "applicable_item_id" in changes:
            updates["applicable_item_id"] = parse_optional_uuid(changes["applicable_item_id"], "applicable_item_id")
        if "days_of_week" in changes:
            updates["days_of_week"] = validate_days_of_week(changes["days_of_week"])
        if "min_stay" in changes:
            validate_stay_limits(changes["min_stay"], None)
        if "max_stay" in changes and changes["max_stay"] is not None:
            validate_stay_limits(1, changes["max_stay"])

        if changes.get("priority") is not None:
            updates["priority"] = changes["priority"]
        if changes.get("is_active") is not None:
            updates["is_active"] = changes["is_active"]

        rule = await self.get_rate(rate_id)

        if "start_date" in changes or "end_date" in changes:
            start_date = changes.get("start_date", rule.start_date)
            end_date = changes.get("end_date", rule.end_date)
            validate_date_range(start_date, end_date)
            updates["start_date"] = start_date
            updates["end_date"] = end_date

        if "min_stay" in changes or "max_stay" in changes:
            min_stay = changes.get("min_stay", rule.min_stay)
            max_stay = changes.get("max_stay", rule.max_stay)
            validate_stay_limits(min_stay, max_stay)
            updates["min_stay"] = min_stay
            updates["max_stay"] = max_stay

        for attribute, value in updates.items():
            setattr(rule, attribute, value)
        rule = await self.rates.save(rule)

        logger.info(
            "Rate rule updated",
            extra={"rate_id": str(rule.id), "updated_fields": sorted(updates)}
        )
        return rule

    async def delete_rate(self, rate_id: UUID | str) -> None:
        rule = await self.get_rate(rate_id)
        await self.rates.delete(rule)
        logger.info("Rate rule deleted", extra={"rate_id": str(rule.id)})

    async def set_active(self, rate_id: UUID | str, active: bool) -> RateRule:
        rule = await self.get_rate(rate_id)
        rule.is_active = active
        rule = await self.rates.save(rule)
        logger.info(
            "Rate rule activated" if active else "Rate rule deactivated",
            extra={"rate_id": str(rule.id)}
        )
        return rule

    async def activate_rate(self, rate_id: UUID | str) -> RateRule:
        return await self.set_active(rate_id, True)

    async def deactivate_rate(self, rate_id: UUID | str) -> RateRule:
        return await self.set_active(rate_id, False)

    async def list_rates(self, request: ListRatesRequest) -> list[RateRule]:
        """List rules, highest priority first."""
        rate_type = validate_rate_type(request.rate_type) if request.rate_type else None
        item_type = parse_item_type(request.item_type) if request.item_type else None
        item_id = parse_optional_uuid(request.item_id, "item_id")

        return await self.rates.list_rules(
            item_type=item_type,
            item_id=item_id,
            rate_type=rate_type,
            active_only=request.active_only,
        )

    async def add_modifier(self, request: AddModifierRequest) -> RateModifier:
        """
        Append a modifier to a rule; it is applied after the existing ones.

        Raises:
            DomainValidationError: INVALID_MODIFIER_TYPE or INVALID_MODIFIER_VALUE
            NotFoundError: RATE_NOT_FOUND
        """
        rate_id = parse_uuid(request.rate_id, "rate_id")
        value = validate_modifier_value(request.modifier_type, request.value)
        modifier_type = ModifierType(request.modifier_type)
        name = (request.name or "").strip()
        if not name:
            raise DomainValidationError(code="INVALID_NAME", detail="Modifier name is required", field="name")

        rule = await self.get_rate(rate_id)
        modifier = await self.rates.add_modifier(RateModifier(
            rate_id=rule.id,
            name=name,
            modifier_type=modifier_type.value,
            value=value,
            condition=request.condition,
        ))

        logger.info(
            "Rate modifier added",
            extra={
                "rate_id": str(rule.id),
                "modifier_id": str(modifier.id),
                "modifier_type": modifier_type.value,
                "value": str(value),
                "position": modifier.position,
            }
        )
        return modifier

    async def get_modifiers(self, rate_id: UUID | str) -> list[RateModifier]:
        rule = await self.get_rate(rate_id)
        return await self.rates.list_modifiers(rule.id)

    async def remove_modifier(self, modifier_id: UUID | str) -> None:
        modifier_id = parse_uuid(modifier_id, "modifier_id")
        modifier = await self.rates.get_modifier(modifier_id)
        if not modifier:
            raise NotFoundError(
                resource_type="rate modifier",
                resource_id=str(modifier_id),
                code="MODIFIER_NOT_FOUND",
            )
        await self.rates.delete_modifier(modifier)
        logger.info(
            "Rate modifier removed",
            extra={"rate_id": str(modifier.rate_id), "modifier_id": str(modifier_id)}
        )

    async def get_stats(self) -> RateStats:
        """Counts per activity and rate type, and the mean base price."""
        rules = await self.rates.list_rules()
        active = sum(1 for rule in rules if rule.is_active)
        by_type = Counter(RateType(rule.rate_type).value for rule in rules)

        if rules:
            average = sum((Decimal(str(rule.base_price)) for rule in rules), ZERO) / len(rules)
        else:
            average = ZERO

        return RateStats(
            total=len(rules),
            active=active,
            inactive=len(rules) - active,
            by_type={rate_type.value: by_type.get(rate_type.value, 0) for rate_type in RateType},
            average_base_price=round_money(average),
        )

    def get_reference(self) -> RateReference:
        return RateReference(
            rate_types=self.get_rate_types(),
            days_of_week=self.get_days_of_week(),
            currencies=self.get_currencies(),
            item_types=[item_type.value for item_type in ItemType],
            modifier_types=[modifier_type.value for modifier_type in ModifierType],
        )

    def get_rate_types(self) -> list[str]:
        return [rate_type.value for rate_type in RateType]

    def get_days_of_week(self) -> list[str]:
        return [day.value for day in DayOfWeek]

    def get_currencies(self) -> list[str]:
        return list(self.supported_currencies)
