"""Unit tests for rate rule selection."""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from resort_engine.core.exceptions import DomainValidationError
from resort_engine.models.enums import ItemType
from resort_engine.models.rate import RateRule
from resort_engine.repositories.memory import InMemoryRateRepository
from resort_engine.services.rate_resolver import RateResolver, rule_applies, select_best
from resort_engine.services.rule_catalog import RuleCatalog

CHALET = uuid4()

# 2025-07-12 is a Saturday
SATURDAY = date(2025, 7, 12)


def _rule(**overrides) -> RateRule:
    fields = {
        "id": uuid4(),
        "name": "Rule",
        "description": "",
        "rate_type": "standard",
        "base_price": Decimal("100.00"),
        "currency": "USD",
        "applicable_item_type": "chalet",
        "applicable_item_id": None,
        "start_date": None,
        "end_date": None,
        "days_of_week": [],
        "min_stay": 1,
        "max_stay": None,
        "priority": 0,
        "is_active": True,
    }
    fields.update(overrides)
    return RateRule(**fields)


async def _resolver_with(*rules) -> RateResolver:
    repo = InMemoryRateRepository()
    for rule in rules:
        await repo.add(rule)
    return RateResolver(RuleCatalog(repo))


class TestRuleApplies:
    """Applicability filters, one at a time."""

    def test_inactive_rule_never_applies(self):
        assert not rule_applies(_rule(is_active=False), ItemType.CHALET, CHALET, SATURDAY, 1)

    def test_item_type_must_match(self):
        assert not rule_applies(_rule(applicable_item_type="room"), ItemType.CHALET, CHALET, SATURDAY, 1)

    def test_specific_rule_needs_same_item(self):
        rule = _rule(applicable_item_id=CHALET)
        assert rule_applies(rule, ItemType.CHALET, CHALET, SATURDAY, 1)
        assert not rule_applies(rule, ItemType.CHALET, uuid4(), SATURDAY, 1)
        assert not rule_applies(rule, ItemType.CHALET, None, SATURDAY, 1)

    def test_wildcard_rule_matches_any_item(self):
        assert rule_applies(_rule(), ItemType.CHALET, uuid4(), SATURDAY, 1)
        assert rule_applies(_rule(), ItemType.CHALET, None, SATURDAY, 1)

    def test_date_bounds_are_inclusive(self):
        rule = _rule(start_date=date(2025, 7, 12), end_date=date(2025, 7, 14))
        assert rule_applies(rule, ItemType.CHALET, None, date(2025, 7, 12), 1)
        assert rule_applies(rule, ItemType.CHALET, None, date(2025, 7, 14), 1)
        assert not rule_applies(rule, ItemType.CHALET, None, date(2025, 7, 11), 1)
        assert not rule_applies(rule, ItemType.CHALET, None, date(2025, 7, 15), 1)

    def test_open_ended_date_bounds(self):
        assert rule_applies(_rule(start_date=date(2025, 1, 1)), ItemType.CHALET, None, SATURDAY, 1)
        assert rule_applies(_rule(end_date=date(2025, 12, 31)), ItemType.CHALET, None, SATURDAY, 1)

    def test_days_of_week_filter(self):
        weekend = _rule(days_of_week=["friday", "saturday"])
        assert rule_applies(weekend, ItemType.CHALET, None, SATURDAY, 1)
        assert not rule_applies(weekend, ItemType.CHALET, None, date(2025, 7, 14), 1)

    def test_stay_length_bounds(self):
        rule = _rule(min_stay=3, max_stay=7)
        assert not rule_applies(rule, ItemType.CHALET, None, SATURDAY, 2)
        assert rule_applies(rule, ItemType.CHALET, None, SATURDAY, 3)
        assert rule_applies(rule, ItemType.CHALET, None, SATURDAY, 7)
        assert not rule_applies(rule, ItemType.CHALET, None, SATURDAY, 8)


class TestSelectBest:
    """Tie-breaking among applicable rules."""

    def test_highest_priority_wins(self):
        low = _rule(priority=1)
        high = _rule(priority=10)
        assert select_best([low, high]) is high

    def test_specific_beats_wildcard_at_equal_priority(self):
        wildcard = _rule(priority=5)
        specific = _rule(priority=5, applicable_item_id=CHALET)
        assert select_best([wildcard, specific]) is specific

    def test_higher_priority_wildcard_beats_specific(self):
        wildcard = _rule(priority=6)
        specific = _rule(priority=5, applicable_item_id=CHALET)
        assert select_best([specific, wildcard]) is wildcard

    def test_remaining_ties_go_to_lowest_id(self):
        first = _rule(id=UUID("00000000-0000-0000-0000-000000000001"))
        second = _rule(id=UUID("00000000-0000-0000-0000-000000000002"))
        assert select_best([second, first]) is first

    def test_empty_input(self):
        assert select_best([]) is None


@pytest.mark.asyncio
async def test_resolve_picks_weekend_rule_on_saturday():
    standard = _rule(name="Standard")
    weekend = _rule(name="Weekend", days_of_week=["saturday"], priority=5)
    resolver = await _resolver_with(standard, weekend)

    assert (await resolver.resolve("chalet", CHALET, SATURDAY, 2)).id == weekend.id
    assert (await resolver.resolve("chalet", CHALET, date(2025, 7, 14), 2)).id == standard.id


@pytest.mark.asyncio
async def test_resolve_returns_none_without_match():
    resolver = await _resolver_with(_rule(applicable_item_type="room"))

    assert await resolver.resolve(ItemType.CHALET, CHALET, SATURDAY, 1) is None


@pytest.mark.asyncio
async def test_resolve_ignores_rules_bound_to_other_items():
    other = _rule(applicable_item_id=uuid4(), priority=100)
    wildcard = _rule()
    resolver = await _resolver_with(other, wildcard)

    assert (await resolver.resolve(ItemType.CHALET, CHALET, SATURDAY, 1)).id == wildcard.id


@pytest.mark.asyncio
async def test_applicable_rules_are_sorted_best_first():
    a = _rule(priority=1)
    b = _rule(priority=3)
    c = _rule(priority=3, applicable_item_id=CHALET)
    resolver = await _resolver_with(a, b, c)

    ordered = await resolver.applicable_rules(ItemType.CHALET, CHALET, SATURDAY, 1)

    assert [rule.id for rule in ordered] == [c.id, b.id, a.id]


@pytest.mark.asyncio
async def test_resolve_is_deterministic():
    rules = [_rule(priority=2) for _ in range(5)]
    resolver = await _resolver_with(*rules)

    picks = {(await resolver.resolve(ItemType.CHALET, None, SATURDAY, 1)).id for _ in range(10)}

    assert picks == {min(rules, key=lambda r: str(r.id)).id}


@pytest.mark.asyncio
async def test_resolve_validates_input():
    resolver = await _resolver_with()

    with pytest.raises(DomainValidationError) as exc_info:
        await resolver.resolve("spaceship", None, SATURDAY, 1)
    assert exc_info.value.code == "INVALID_ITEM_TYPE"

    with pytest.raises(DomainValidationError) as exc_info:
        await resolver.resolve(ItemType.CHALET, None, SATURDAY, 0)
    assert exc_info.value.code == "INVALID_NIGHTS"
