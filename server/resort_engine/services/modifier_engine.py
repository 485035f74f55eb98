"""Sequential application of rate modifiers to a base amount."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from ..core.exceptions import DomainValidationError
from ..models.enums import ModifierType
from ..models.rate import RateModifier

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

PERCENTAGE_MIN = Decimal("-100")
PERCENTAGE_MAX = Decimal("1000")


@dataclass(frozen=True)
class AppliedModifier:
    """One step of a modifier application, with the signed change it made."""

    name: str
    modifier_type: ModifierType
    value: Decimal
    amount: Decimal


def round_money(amount: Decimal) -> Decimal:
    """Round half-up to cents."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def validate_modifier_value(modifier_type: ModifierType, value: Decimal) -> Decimal:
    """
    Check a modifier value against its type.

    Percentages must lie in [-100, 1000]; fixed amounts must be finite.

    Raises:
        DomainValidationError: INVALID_MODIFIER_TYPE or INVALID_MODIFIER_VALUE
    """
    try:
        modifier_type = ModifierType(modifier_type)
    except ValueError:
        raise DomainValidationError(
            code="INVALID_MODIFIER_TYPE",
            detail=f"Invalid modifier type: {modifier_type}",
            field="modifier_type",
        ) from None

    value = Decimal(str(value))
    if not value.is_finite():
        raise DomainValidationError(
            code="INVALID_MODIFIER_VALUE",
            detail="Modifier value must be a finite number",
            field="value",
        )
    if modifier_type == ModifierType.PERCENTAGE and not PERCENTAGE_MIN <= value <= PERCENTAGE_MAX:
        raise DomainValidationError(
            code="INVALID_MODIFIER_VALUE",
            detail="Percentage must be between -100 and 1000",
            field="value",
        )
    return value


class ModifierEngine:
    """
    Applies modifiers one after another to a running amount.

    A percentage modifier scales the running amount by (1 + v/100); a fixed
    modifier adds v. The result is floored at zero and rounded half-up to
    cents once, after the last modifier. Order matters: two -10% steps on
    100 give 81.00, not 80.00.
    """

    def apply_modifiers(self, base_amount: Decimal, modifiers: Iterable[RateModifier]) -> Decimal:
        total, _ = self.breakdown(base_amount, modifiers)
        return total

    def breakdown(
        self,
        base_amount: Decimal,
        modifiers: Iterable[RateModifier],
    ) -> tuple[Decimal, list[AppliedModifier]]:
        """
        Apply modifiers in the given order.

        Returns:
            The final amount and, per modifier, the signed change it made to
            the running amount (unrounded)
        """
        running = Decimal(str(base_amount))
        steps: list[AppliedModifier] = []

        for modifier in modifiers:
            value = validate_modifier_value(modifier.modifier_type, modifier.value)
            modifier_type = ModifierType(modifier.modifier_type)

            before = running
            if modifier_type == ModifierType.PERCENTAGE:
                running = running * (1 + value / HUNDRED)
            else:
                running = running + value

            steps.append(AppliedModifier(
                name=modifier.name,
                modifier_type=modifier_type,
                value=value,
                amount=running - before,
            ))

        return round_money(max(running, ZERO)), steps


def apply_modifiers(base_amount: Decimal, modifiers: Sequence[RateModifier]) -> Decimal:
    """Module-level shortcut for ``ModifierEngine().apply_modifiers``."""
    return ModifierEngine().apply_modifiers(base_amount, modifiers)
