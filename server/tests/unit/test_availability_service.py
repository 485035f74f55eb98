"""Unit tests for the combined availability and pricing facade."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from resort_engine.core.exceptions import DomainValidationError, NoApplicableRateError
from resort_engine.schemas.allocation import CreateAllocationRequest
from resort_engine.schemas.availability import AvailabilityRequest
from resort_engine.schemas.rate import AddModifierRequest, CreateRateRequest
from resort_engine.services.availability_service import stay_length_nights


@pytest.mark.parametrize("start,end,nights", [
    (datetime(2025, 7, 10, 15), datetime(2025, 7, 13, 11), 3),
    (datetime(2025, 7, 10, 0), datetime(2025, 7, 13, 0), 3),
    (datetime(2025, 7, 10, 9), datetime(2025, 7, 10, 11), 1),
    (datetime(2025, 7, 10, 0), datetime(2025, 7, 11, 0, 0, 1), 2),
])
def test_stay_length_rounds_up_days(start, end, nights):
    assert stay_length_nights(start, end) == nights


@pytest.mark.asyncio
async def test_quote_applies_modifiers_in_order(rate_service, facade, sample_rate_data):
    rule = await rate_service.create_rate(CreateRateRequest(**sample_rate_data))
    for name in ("Early bird", "Loyalty"):
        await rate_service.add_modifier(AddModifierRequest(
            rate_id=str(rule.id), name=name, modifier_type="percentage", value=Decimal("-10")
        ))

    result = await facade.resolve_rate("chalet", uuid4(), date(2025, 7, 14), 1)

    assert result.base_price == Decimal("100.00")
    assert result.total_price == Decimal("81.00")
    assert result.applied_rule_id == str(rule.id)
    assert [line.name for line in result.modifiers] == ["Early bird", "Loyalty"]
    assert [line.amount for line in result.modifiers] == [Decimal("-10.00"), Decimal("-9.00")]


@pytest.mark.asyncio
async def test_quote_multiplies_base_by_nights(rate_service, facade, sample_rate_data):
    await rate_service.create_rate(CreateRateRequest(**sample_rate_data))

    result = await facade.resolve_rate("chalet", None, date(2025, 7, 14), 3)

    assert result.nights == 3
    assert result.base_price == Decimal("300.00")
    assert result.total_price == Decimal("300.00")


@pytest.mark.asyncio
async def test_quote_falls_back_to_zero(facade):
    result = await facade.resolve_rate("room", None, date(2025, 7, 14), 2)

    assert result.total_price == Decimal("0.00")
    assert result.base_price == Decimal("0.00")
    assert result.applied_rule_id is None
    assert result.currency == "USD"
    assert result.modifiers == []


@pytest.mark.asyncio
async def test_strict_mode_raises_without_rule(strict_facade):
    with pytest.raises(NoApplicableRateError) as exc_info:
        await strict_facade.resolve_rate("room", None, date(2025, 7, 14), 2)

    assert exc_info.value.status_code == 422
    assert exc_info.value.code == "NO_APPLICABLE_RATE"


@pytest.mark.asyncio
async def test_quote_uses_rule_currency(rate_service, facade, sample_rate_data):
    await rate_service.create_rate(CreateRateRequest(**{**sample_rate_data, "currency": "eur"}))

    result = await facade.resolve_rate("chalet", None, date(2025, 7, 14), 1)

    assert result.currency == "EUR"


@pytest.mark.asyncio
async def test_evaluate_free_interval(rate_service, facade, sample_rate_data, resource_id):
    await rate_service.create_rate(CreateRateRequest(**sample_rate_data))

    result = await facade.evaluate(AvailabilityRequest(
        resource_id=str(resource_id),
        item_type="chalet",
        start=datetime(2025, 7, 10, 15),
        end=datetime(2025, 7, 12, 11),
    ))

    assert result.available is True
    assert result.conflicts == []
    assert result.blocked_dates == []
    assert result.pricing.nights == 2
    assert result.pricing.total_price == Decimal("200.00")


@pytest.mark.asyncio
async def test_evaluate_reports_conflicts_and_still_prices(
    allocation_service, rate_service, facade, sample_rate_data, sample_allocation_data
):
    await rate_service.create_rate(CreateRateRequest(**sample_rate_data))
    existing = await allocation_service.create_allocation(CreateAllocationRequest(**sample_allocation_data))

    result = await facade.evaluate(AvailabilityRequest(
        resource_id=sample_allocation_data["resource_id"],
        item_type="chalet",
        start=datetime(2025, 7, 12, 15),
        end=datetime(2025, 7, 15, 11),
    ))

    assert result.available is False
    assert [c.id for c in result.conflicts] == [str(existing.id)]
    assert result.conflicts[0].status == "pending"
    assert result.blocked_dates == [date(2025, 7, 12)]
    assert result.pricing.total_price == Decimal("300.00")


@pytest.mark.asyncio
async def test_evaluate_on_checkout_date_reports_blocked_date(
    allocation_service, facade, sample_allocation_data
):
    """A short request on a stay's checkout morning is blocked on that date."""
    await allocation_service.create_allocation(CreateAllocationRequest(**sample_allocation_data))

    result = await facade.evaluate(AvailabilityRequest(
        resource_id=sample_allocation_data["resource_id"],
        item_type="chalet",
        start=datetime(2025, 7, 13, 9),
        end=datetime(2025, 7, 13, 10),
    ))

    assert result.available is False
    assert result.blocked_dates == [date(2025, 7, 13)]


@pytest.mark.asyncio
async def test_evaluate_excludes_allocation_being_edited(allocation_service, facade, sample_allocation_data):
    existing = await allocation_service.create_allocation(CreateAllocationRequest(**sample_allocation_data))

    result = await facade.evaluate(AvailabilityRequest(
        resource_id=sample_allocation_data["resource_id"],
        item_type="chalet",
        start=datetime(2025, 7, 11, 15),
        end=datetime(2025, 7, 14, 11),
        exclude_allocation_id=str(existing.id),
    ))

    assert result.available is True


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides,code", [
    ({"resource_id": "not-a-uuid"}, "INVALID_ID"),
    ({"item_type": "spaceship"}, "INVALID_ITEM_TYPE"),
    ({"end": datetime(2025, 7, 10, 15)}, "INVALID_TIME_RANGE"),
    ({"party_size": 0}, "INVALID_PARTY_SIZE"),
])
async def test_evaluate_rejects_bad_input(facade, overrides, code):
    fields = {
        "resource_id": str(uuid4()),
        "item_type": "chalet",
        "start": datetime(2025, 7, 10, 15),
        "end": datetime(2025, 7, 12, 11),
    }
    fields.update(overrides)

    with pytest.raises(DomainValidationError) as exc_info:
        await facade.evaluate(AvailabilityRequest(**fields))

    assert exc_info.value.code == code


@pytest.mark.asyncio
async def test_evaluate_prices_caller_local_check_in_date(
    allocation_service, rate_service, facade, sample_rate_data, resource_id
):
    """Saturday 01:00 at +03:00 is still Friday in UTC; weekend rules apply."""
    await rate_service.create_rate(CreateRateRequest(**sample_rate_data))
    weekend = await rate_service.create_rate(CreateRateRequest(
        **{**sample_rate_data, "name": "Weekend chalet", "base_price": Decimal("200")},
        days_of_week=["saturday", "sunday"],
        priority=5,
    ))
    plus_three = timezone(timedelta(hours=3))
    start = datetime(2025, 7, 12, 1, tzinfo=plus_three)

    result = await facade.evaluate(AvailabilityRequest(
        resource_id=str(resource_id),
        item_type="chalet",
        start=start,
        end=start + timedelta(days=1),
    ))
    allocation = await allocation_service.create_allocation(CreateAllocationRequest(
        resource_id=str(resource_id),
        item_type="chalet",
        start=start,
        end=start + timedelta(days=1),
    ))

    assert result.pricing.applied_rule_id == str(weekend.id)
    assert result.pricing.total_price == Decimal("200.00")
    assert allocation.total_price == Decimal("200.00")
    # Stored interval is still UTC
    assert allocation.starts_at == datetime(2025, 7, 11, 22)


@pytest.mark.asyncio
async def test_evaluate_quotes_what_allocation_would_store(
    allocation_service, rate_service, facade, sample_rate_data, sample_allocation_data
):
    """Without an item_id the resource itself is used for rate matching."""
    await rate_service.create_rate(CreateRateRequest(**sample_rate_data))
    specific = await rate_service.create_rate(CreateRateRequest(
        **{**sample_rate_data, "name": "This chalet", "base_price": Decimal("150"),
           "applicable_item_id": sample_allocation_data["resource_id"]}
    ))

    result = await facade.evaluate(AvailabilityRequest(
        resource_id=sample_allocation_data["resource_id"],
        item_type="chalet",
        start=sample_allocation_data["start"],
        end=sample_allocation_data["end"],
    ))
    allocation = await allocation_service.create_allocation(CreateAllocationRequest(**sample_allocation_data))

    assert result.pricing.applied_rule_id == str(specific.id)
    assert result.pricing.total_price == allocation.total_price == Decimal("450.00")
