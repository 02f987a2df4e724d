"""Core calculation engine for the loan schedule calculator.

This module turns a resolved :class:`~loan_schedule.configuration.LoanConfiguration`
into an amortization schedule. It computes the regular (annuity) repayment,
then walks the repayment periods one by one applying the interest-only
period, extra payments and adjustable-rate (ARM) changes until the balance is
repaid or the term runs out. Any principal left at that point is settled by a
final balloon payment.

Every intermediate amount is rounded to the configuration's ``rounding``
digits and the rounded value is what the following periods build on.
"""

from __future__ import annotations

import logging
from decimal import Decimal, DecimalException, getcontext
from typing import TYPE_CHECKING, Dict, List

from .data_models import EMPTY_SCHEDULE, SUB_MONTHLY_DIVISORS, Payment, ScheduleResult
from .errors import InvalidConfiguration
from .utils import round_to

if TYPE_CHECKING:
    from .configuration import LoanConfiguration

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12
HUNDRED = Decimal(100)
ZERO = Decimal("0")
# Remaining balances up to one cent are not worth a balloon payment.
BALANCE_TOLERANCE = Decimal("0.01")

_FINITE_SETTINGS = (
    "amount",
    "interest_rate",
    "extra_payment",
    "arm_initial_variable_rate",
    "arm_expected_adjustment_rate",
    "arm_maximum_interest_rate",
)

_FINITE_PERIODS = ("interest_only_period", "arm_fixed_period", "arm_adjustment_interval")


def _calculate_annuity_payment(principal: Decimal, rate_per_period: Decimal, periods: int) -> Decimal:
    """Return the level payment that repays ``principal`` over ``periods``.

    The formula is:

        payment = P * x * i / (x - 1),   x = (1 + i)^n

    where ``P`` is the principal, ``i`` is the periodic interest rate and
    ``n`` is the number of amortizing payments. Without amortizing payments
    (a loan that is interest-only for its whole term) the payment is zero and
    the balance is repaid by the balloon payment instead.
    """
    if periods <= 0:
        return ZERO
    factor = (1 + rate_per_period) ** periods
    return principal * factor * rate_per_period / (factor - 1)


def _validate(configuration: LoanConfiguration) -> None:
    for name in _FINITE_SETTINGS:
        value = getattr(configuration, name)
        if not value.is_finite():
            raise InvalidConfiguration(f"{name} must be a finite number, got {value}")
    for name in _FINITE_PERIODS:
        duration = getattr(configuration, name)
        if not duration.value.is_finite():
            raise InvalidConfiguration(f"{name} must be a finite number, got {duration.value}")


def _is_degenerate(configuration: LoanConfiguration) -> bool:
    """Nothing to amortize: no principal, no term or no interest."""
    return not configuration.amount or not configuration.months or not configuration.interest_rate


def _repayment_amount(configuration: LoanConfiguration) -> Decimal:
    digits = configuration.rounding
    amount = configuration.amount
    frequency = configuration.repayment_frequency
    payments_per_year = configuration.payments_count_per_year

    if frequency.is_sub_monthly and not configuration.calculate_sub_monthly_from_yearly:
        # Quote weekly/fortnightly installments as a fraction of the monthly one.
        interest_only_months = int(configuration.interest_only_period.months(payments_per_year))
        monthly = _calculate_annuity_payment(
            amount,
            configuration.interest_rate / MONTHS_PER_YEAR / HUNDRED,
            configuration.months - interest_only_months,
        )
        return round_to(round_to(monthly, digits) / SUB_MONTHLY_DIVISORS[frequency], digits)

    payment = _calculate_annuity_payment(
        amount,
        configuration.interest_rate / payments_per_year / HUNDRED,
        configuration.payments_count_total - configuration.interest_only_repayment_count,
    )
    return round_to(payment, digits)


def calculate_repayment_amount(configuration: LoanConfiguration) -> Decimal:
    """Return the regular repayment due after the interest-only period.

    Degenerate loans (zero amount, term or rate) have a repayment of zero.

    Raises
    ------
    InvalidConfiguration
        If a setting is not finite or the arithmetic overflows.
    """
    _validate(configuration)
    if _is_degenerate(configuration):
        return ZERO
    try:
        return _repayment_amount(configuration)
    except DecimalException as exc:
        raise InvalidConfiguration(f"Cannot compute the repayment amount: {exc!r}") from exc


def _build_schedule(configuration: LoanConfiguration) -> ScheduleResult:
    digits = configuration.rounding
    repayment = _repayment_amount(configuration)
    periods_total = configuration.payments_count_total
    interest_only = configuration.interest_only_repayment_count
    extra_payment = configuration.extra_payment

    rate = configuration.interest_rate / configuration.payments_count_per_year / HUNDRED
    # ARM rates are annual percentages converted on a monthly basis whatever
    # the repayment frequency; the timing below counts repayment periods.
    adjust = configuration.arm_enabled
    variable_rate = configuration.arm_initial_variable_rate / MONTHS_PER_YEAR / HUNDRED
    adjustment_step = configuration.arm_expected_adjustment_rate / MONTHS_PER_YEAR / HUNDRED
    maximum_rate = configuration.arm_maximum_interest_rate / MONTHS_PER_YEAR / HUNDRED
    fixed_periods = configuration.arm_fixed_rate_for_repayment_count
    adjustment_interval = configuration.arm_repayment_count_between_adjustments

    payments: List[Payment] = []
    total_cost = ZERO
    total_interest = ZERO
    balance = configuration.amount

    for period in range(periods_total):
        if balance <= 0:
            break
        if adjust:
            if period == fixed_periods:
                rate = variable_rate
            if period > fixed_periods and adjustment_interval > 0 and period % adjustment_interval == 0:
                rate = min(rate + adjustment_step, maximum_rate)

        interest = round_to(rate * balance, digits)
        if period < interest_only:
            amount = interest
            principal = round_to(ZERO, digits)
        else:
            amount = round_to(min(repayment + extra_payment, balance + interest), digits)
            principal = min(round_to(repayment - interest + extra_payment, digits), balance)
        balance = round_to(balance - principal, digits)

        payments.append(Payment(amount=amount, principal=principal, interest=interest, balance=balance))
        total_cost += amount
        total_interest += interest

    if round_to(balance, 2) > BALANCE_TOLERANCE:
        logger.debug("Settling remaining balance %s with a balloon payment", balance)
        payments.append(
            Payment(amount=balance, principal=balance, interest=round_to(ZERO, digits), balance=round_to(ZERO, digits))
        )
        total_cost += balance

    logger.debug(
        "Built schedule: %d payments, total cost %s, total interest %s",
        len(payments),
        total_cost,
        total_interest,
    )
    return ScheduleResult(
        payments=tuple(payments),
        repayment_amount=repayment,
        total_cost=total_cost,
        total_interest=total_interest,
    )


def compute_schedule(configuration: LoanConfiguration) -> ScheduleResult:
    """Compute the amortization schedule and totals for a loan.

    Parameters
    ----------
    configuration: LoanConfiguration
        The loan settings. Only its public properties are read.

    Returns
    -------
    ScheduleResult
        The payments in period order together with the regular repayment
        amount, the total cost and the total interest. Degenerate loans
        (zero amount, term or rate) yield an empty schedule.

    Raises
    ------
    InvalidConfiguration
        If a setting is not finite or the arithmetic overflows.
    """
    _validate(configuration)
    if _is_degenerate(configuration):
        logger.debug("Nothing to amortize for %r", configuration)
        return EMPTY_SCHEDULE
    try:
        return _build_schedule(configuration)
    except DecimalException as exc:
        raise InvalidConfiguration(f"Cannot compute the schedule: {exc!r}") from exc


def summarize(configuration: LoanConfiguration) -> Dict[str, object]:
    """Return aggregate metrics for a loan as plain JSON-friendly values.

    The balloon payment is the final lump sum that settles principal still
    outstanding once the regular repayments run out; it is zero for a fully
    amortizing loan and is not counted in ``max_payment``.
    """
    payments = configuration.payments
    balloon = ZERO
    regular = payments
    if len(payments) > configuration.payments_count_total:
        balloon = payments[-1].amount
        regular = payments[:-1]
    max_payment = max((p.amount for p in regular), default=ZERO)

    return {
        "repayment_amount": float(configuration.repayment_amount),
        "total_cost": float(configuration.total_cost),
        "total_interest": float(configuration.total_interest),
        "payments_per_year": configuration.payments_count_per_year,
        "payments_total": configuration.payments_count_total,
        "payments_made": len(payments),
        "interest_only_payments": min(configuration.interest_only_repayment_count, len(regular)),
        "max_payment": float(max_payment),
        "balloon_payment": float(balloon),
    }


def compare_summaries(first: Dict[str, object], second: Dict[str, object]) -> Dict[str, float]:
    """Return ``second - first`` for the numeric metrics worth comparing.

    A negative difference means the second scenario is cheaper or shorter.
    """
    keys = ("repayment_amount", "total_cost", "total_interest", "payments_made", "balloon_payment")
    return {key: float(second[key]) - float(first[key]) for key in keys}
