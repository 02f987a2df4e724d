"""Data models for the loan schedule calculator.

This module defines the value types shared by the configuration and the
engine: the repayment frequencies, the dual-representation ``Duration`` used
for the overriding period settings, the individual ``Payment`` records and the
cached ``ScheduleResult``. Records produced by the engine are frozen
dataclasses so that a cached schedule can be handed out by reference.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Tuple


class RepaymentFrequency(str, Enum):
    """How often a repayment is made."""

    YEARLY = "yearly"
    QUARTERLY = "quarterly"
    MONTHLY = "monthly"
    FORTNIGHTLY = "fortnightly"
    WEEKLY = "weekly"

    @property
    def payments_per_year(self) -> int:
        return PAYMENTS_PER_YEAR[self]

    @property
    def is_sub_monthly(self) -> bool:
        return self in (RepaymentFrequency.FORTNIGHTLY, RepaymentFrequency.WEEKLY)


PAYMENTS_PER_YEAR = {
    RepaymentFrequency.YEARLY: 1,
    RepaymentFrequency.QUARTERLY: 4,
    RepaymentFrequency.MONTHLY: 12,
    RepaymentFrequency.FORTNIGHTLY: 26,
    RepaymentFrequency.WEEKLY: 52,
}

# Monthly repayment divisor used when weekly/fortnightly installments are
# quoted as a fraction of the monthly one.
SUB_MONTHLY_DIVISORS = {
    RepaymentFrequency.FORTNIGHTLY: 2,
    RepaymentFrequency.WEEKLY: 4,
}


class DurationUnit(str, Enum):
    """The representation that is currently live for a ``Duration``."""

    REPAYMENTS = "repayments"
    MONTHS = "months"
    YEARS = "years"


@dataclass(frozen=True)
class Duration:
    """A period stored in exactly one unit.

    The configuration lets callers express the interest-only period, the ARM
    fixed-rate period and the ARM adjustment interval either as a number of
    repayments or as a calendar length. Only the unit that was set last is
    stored; every other view is derived on read using the current number of
    payments per year, so changing the repayment frequency keeps the stored
    value and moves the derived ones.

    Attributes
    ----------
    value: Decimal
        The stored quantity, expressed in ``unit``.
    unit: DurationUnit
        The live representation.
    """

    value: Decimal
    unit: DurationUnit

    def repayments(self, payments_per_year: int) -> int:
        """Return the duration as a whole number of repayments."""
        if self.unit is DurationUnit.REPAYMENTS:
            count = self.value
        elif self.unit is DurationUnit.YEARS:
            count = self.value * payments_per_year
        else:
            count = self.value * payments_per_year / 12
        return int(count)

    def months(self, payments_per_year: int) -> Decimal:
        if self.unit is DurationUnit.MONTHS:
            return self.value
        if self.unit is DurationUnit.YEARS:
            return self.value * 12
        return self.value * 12 / Decimal(payments_per_year)

    def years(self, payments_per_year: int) -> Decimal:
        if self.unit is DurationUnit.YEARS:
            return self.value
        if self.unit is DurationUnit.MONTHS:
            return self.value / 12
        return self.value / Decimal(payments_per_year)


@dataclass(frozen=True)
class Payment:
    """One entry of the amortization schedule.

    All amounts are rounded to the configuration's ``rounding`` digits. The
    ``balance`` is the principal still owed *after* this payment.
    """

    amount: Decimal
    principal: Decimal
    interest: Decimal
    balance: Decimal


@dataclass(frozen=True)
class ScheduleResult:
    """The derived, cached output of one schedule build."""

    payments: Tuple[Payment, ...]
    repayment_amount: Decimal
    total_cost: Decimal
    total_interest: Decimal


EMPTY_SCHEDULE = ScheduleResult(
    payments=(),
    repayment_amount=Decimal("0"),
    total_cost=Decimal("0"),
    total_interest=Decimal("0"),
)
