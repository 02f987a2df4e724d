"""Mutable loan configuration with a lazily computed schedule.

``LoanConfiguration`` holds every adjustable loan parameter. Several settings
can be expressed in two equivalent ways (the term in months or years, the
interest-only period in repayments or years, and so on); each such pair is
stored as a single ``Duration`` so the two views can never diverge.

Reading a derived property (``payments``, ``total_cost`` ...) builds the
schedule through :mod:`loan_schedule.engine` and caches it. Any setter that
changes the effective state drops the cache; setting a value equal to the
current one does nothing.
"""

from __future__ import annotations

import logging
from decimal import Decimal, DecimalException
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .data_models import Duration, DurationUnit, Payment, RepaymentFrequency, ScheduleResult
from .engine import compute_schedule
from .errors import InvalidConfiguration
from .utils import Number, parse_bool, to_decimal

logger = logging.getLogger(__name__)

# Names accepted by ``apply`` / ``from_mapping``, i.e. every public setter.
SETTABLE_FIELDS = (
    "amount",
    "interest_rate",
    "months",
    "years",
    "repayment_frequency",
    "extra_payment",
    "interest_only_repayment_count",
    "interest_only_years",
    "calculate_sub_monthly_from_yearly",
    "rounding",
    "arm_fixed_rate_for_repayment_count",
    "arm_fixed_rate_for_years",
    "arm_initial_variable_rate",
    "arm_repayment_count_between_adjustments",
    "arm_months_between_adjustments",
    "arm_expected_adjustment_rate",
    "arm_maximum_interest_rate",
)

_STATE_FIELDS = (
    "_amount",
    "_interest_rate",
    "_months",
    "_frequency",
    "_extra_payment",
    "_interest_only",
    "_sub_monthly_from_yearly",
    "_rounding",
    "_arm_fixed",
    "_arm_initial_variable_rate",
    "_arm_interval",
    "_arm_expected_adjustment_rate",
    "_arm_maximum_interest_rate",
)

DEFAULT_ROUNDING = 8
DEFAULT_ARM_MONTHS_BETWEEN_ADJUSTMENTS = 12


def _decimal(name: str, value: Number) -> Decimal:
    try:
        number = to_decimal(value)
    except ValueError as exc:
        raise InvalidConfiguration(f"{name}: {exc}") from exc
    # A signaling NaN raises on comparison, so it never reaches a setter.
    if number.is_snan():
        raise InvalidConfiguration(f"{name}: Invalid numeric value: {value}")
    return number


def _integer(name: str, value: Number, scale: int = 1) -> int:
    number = _decimal(name, value)
    try:
        return int(number * scale)
    except (ValueError, OverflowError, DecimalException) as exc:
        raise InvalidConfiguration(f"{name}: {exc}") from exc


class LoanConfiguration:
    """Adjustable loan parameters plus the schedule derived from them.

    Keyword arguments are applied in order, exactly as if the matching
    properties were assigned one after another::

        loan = LoanConfiguration(amount=800_000, years=5, interest_rate=2.56)
        loan.extra_payment = 1000
        loan.total_interest
    """

    def __init__(self, **fields: Any) -> None:
        self._amount = Decimal("0")
        self._interest_rate = Decimal("0")
        self._months = 0
        self._frequency = RepaymentFrequency.MONTHLY
        self._extra_payment = Decimal("0")
        self._interest_only = Duration(Decimal("0"), DurationUnit.REPAYMENTS)
        self._sub_monthly_from_yearly = False
        self._rounding = DEFAULT_ROUNDING
        self._arm_fixed = Duration(Decimal("0"), DurationUnit.REPAYMENTS)
        self._arm_initial_variable_rate = Decimal("0")
        self._arm_interval = Duration(Decimal(DEFAULT_ARM_MONTHS_BETWEEN_ADJUSTMENTS), DurationUnit.MONTHS)
        self._arm_expected_adjustment_rate = Decimal("0")
        self._arm_maximum_interest_rate = Decimal("0")
        self._result: Optional[ScheduleResult] = None
        if fields:
            self.apply(fields)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "LoanConfiguration":
        """Build a configuration from ``{setting name: value}``."""
        configuration = cls()
        configuration.apply(mapping)
        return configuration

    def apply(self, mapping: Mapping[str, Any]) -> "LoanConfiguration":
        """Assign every setting in ``mapping``, in mapping order.

        Later keys win over earlier ones of the same override pair, so
        ``{"years": 5, "months": 66}`` leaves a 66 month term.
        """
        for name, value in mapping.items():
            if name not in SETTABLE_FIELDS:
                raise InvalidConfiguration(f"Unknown loan setting: {name}")
            setattr(self, name, value)
        return self

    def as_dict(self) -> Dict[str, Any]:
        """Return the live settings; ``from_mapping`` of the result is a copy."""
        data: Dict[str, Any] = {
            "amount": self._amount,
            "interest_rate": self._interest_rate,
            "months": self._months,
            "repayment_frequency": self._frequency.value,
            "extra_payment": self._extra_payment,
            "calculate_sub_monthly_from_yearly": self._sub_monthly_from_yearly,
            "rounding": self._rounding,
            "arm_initial_variable_rate": self._arm_initial_variable_rate,
            "arm_expected_adjustment_rate": self._arm_expected_adjustment_rate,
            "arm_maximum_interest_rate": self._arm_maximum_interest_rate,
        }
        if self._interest_only.unit is DurationUnit.YEARS:
            data["interest_only_years"] = self._interest_only.value
        else:
            data["interest_only_repayment_count"] = int(self._interest_only.value)
        if self._arm_fixed.unit is DurationUnit.YEARS:
            data["arm_fixed_rate_for_years"] = self._arm_fixed.value
        else:
            data["arm_fixed_rate_for_repayment_count"] = int(self._arm_fixed.value)
        if self._arm_interval.unit is DurationUnit.MONTHS:
            data["arm_months_between_adjustments"] = self._arm_interval.value
        else:
            data["arm_repayment_count_between_adjustments"] = int(self._arm_interval.value)
        return data

    def clone(self) -> "LoanConfiguration":
        """Return an independent copy with the same settings and a clean cache."""
        copy = type(self)()
        for name in _STATE_FIELDS:
            setattr(copy, name, getattr(self, name))
        return copy

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(amount={self._amount}, interest_rate={self._interest_rate}, "
            f"months={self._months}, repayment_frequency={self._frequency.value!r})"
        )

    # Cache handling

    def _invalidate(self) -> None:
        if self._result is not None:
            logger.debug("Loan configuration changed; dropping cached schedule")
        self._result = None

    def _set(self, attribute: str, value: Any) -> None:
        if getattr(self, attribute) == value:
            return
        setattr(self, attribute, value)
        self._invalidate()

    def _calculated(self) -> ScheduleResult:
        if self._result is None:
            self._result = compute_schedule(self)
        return self._result

    # Principal, rate and term

    @property
    def amount(self) -> Decimal:
        return self._amount

    @amount.setter
    def amount(self, value: Number) -> None:
        self._set("_amount", _decimal("amount", value))

    @property
    def interest_rate(self) -> Decimal:
        """Annual interest rate in percent, 0-100."""
        return self._interest_rate

    @interest_rate.setter
    def interest_rate(self, value: Number) -> None:
        self._set("_interest_rate", _decimal("interest_rate", value))

    @property
    def months(self) -> int:
        """Loan term in months. Overrides a term previously given in years."""
        return self._months

    @months.setter
    def months(self, value: Number) -> None:
        self._set("_months", _integer("months", value))

    @property
    def years(self) -> int:
        """Loan term in whole years. Setting it stores ``years * 12`` months."""
        return self._months // 12

    @years.setter
    def years(self, value: Number) -> None:
        self._set("_months", _integer("years", value, scale=12))

    @property
    def repayment_frequency(self) -> RepaymentFrequency:
        return self._frequency

    @repayment_frequency.setter
    def repayment_frequency(self, value: Union[RepaymentFrequency, str]) -> None:
        try:
            frequency = RepaymentFrequency(value.lower() if isinstance(value, str) else value)
        except ValueError as exc:
            raise InvalidConfiguration(f"Unknown repayment frequency: {value}") from exc
        self._set("_frequency", frequency)

    @property
    def extra_payment(self) -> Decimal:
        """Amount added to every repayment once the interest-only period is over."""
        return self._extra_payment

    @extra_payment.setter
    def extra_payment(self, value: Number) -> None:
        self._set("_extra_payment", _decimal("extra_payment", value))

    @property
    def calculate_sub_monthly_from_yearly(self) -> bool:
        """Amortize weekly/fortnightly repayments on their own schedule.

        When false (the default) a weekly repayment is a quarter of the
        monthly one and a fortnightly repayment is half of it.
        """
        return self._sub_monthly_from_yearly

    @calculate_sub_monthly_from_yearly.setter
    def calculate_sub_monthly_from_yearly(self, value: Union[bool, str]) -> None:
        try:
            flag = parse_bool(value)
        except ValueError as exc:
            raise InvalidConfiguration(f"calculate_sub_monthly_from_yearly: {exc}") from exc
        self._set("_sub_monthly_from_yearly", flag)

    @property
    def rounding(self) -> int:
        """Fractional digits kept by every intermediate rounding."""
        return self._rounding

    @rounding.setter
    def rounding(self, value: Number) -> None:
        digits = _integer("rounding", value)
        if digits < 0:
            raise InvalidConfiguration(f"rounding must be non-negative, got {digits}")
        self._set("_rounding", digits)

    # Interest-only period

    @property
    def interest_only_period(self) -> Duration:
        return self._interest_only

    @property
    def interest_only_repayment_count(self) -> int:
        return self._interest_only.repayments(self.payments_count_per_year)

    @interest_only_repayment_count.setter
    def interest_only_repayment_count(self, value: Number) -> None:
        count = _decimal("interest_only_repayment_count", value)
        self._set("_interest_only", Duration(count, DurationUnit.REPAYMENTS))

    @property
    def interest_only_years(self) -> Decimal:
        return self._interest_only.years(self.payments_count_per_year)

    @interest_only_years.setter
    def interest_only_years(self, value: Number) -> None:
        years = _decimal("interest_only_years", value)
        self._set("_interest_only", Duration(years, DurationUnit.YEARS))

    # ARM (adjustable rate mortgage) options

    @property
    def arm_fixed_period(self) -> Duration:
        return self._arm_fixed

    @property
    def arm_fixed_rate_for_repayment_count(self) -> int:
        """Repayments charged at ``interest_rate`` before the variable rate starts."""
        return self._arm_fixed.repayments(self.payments_count_per_year)

    @arm_fixed_rate_for_repayment_count.setter
    def arm_fixed_rate_for_repayment_count(self, value: Number) -> None:
        count = _decimal("arm_fixed_rate_for_repayment_count", value)
        self._set("_arm_fixed", Duration(count, DurationUnit.REPAYMENTS))

    @property
    def arm_fixed_rate_for_years(self) -> Decimal:
        return self._arm_fixed.years(self.payments_count_per_year)

    @arm_fixed_rate_for_years.setter
    def arm_fixed_rate_for_years(self, value: Number) -> None:
        years = _decimal("arm_fixed_rate_for_years", value)
        self._set("_arm_fixed", Duration(years, DurationUnit.YEARS))

    @property
    def arm_initial_variable_rate(self) -> Decimal:
        """Annual rate, in percent, used once the fixed period ends."""
        return self._arm_initial_variable_rate

    @arm_initial_variable_rate.setter
    def arm_initial_variable_rate(self, value: Number) -> None:
        self._set("_arm_initial_variable_rate", _decimal("arm_initial_variable_rate", value))

    @property
    def arm_adjustment_interval(self) -> Duration:
        return self._arm_interval

    @property
    def arm_repayment_count_between_adjustments(self) -> int:
        return self._arm_interval.repayments(self.payments_count_per_year)

    @arm_repayment_count_between_adjustments.setter
    def arm_repayment_count_between_adjustments(self, value: Number) -> None:
        count = _decimal("arm_repayment_count_between_adjustments", value)
        self._set("_arm_interval", Duration(count, DurationUnit.REPAYMENTS))

    @property
    def arm_months_between_adjustments(self) -> Decimal:
        return self._arm_interval.months(self.payments_count_per_year)

    @arm_months_between_adjustments.setter
    def arm_months_between_adjustments(self, value: Number) -> None:
        months = _decimal("arm_months_between_adjustments", value)
        self._set("_arm_interval", Duration(months, DurationUnit.MONTHS))

    @property
    def arm_expected_adjustment_rate(self) -> Decimal:
        """Annual percentage added to the variable rate at every adjustment."""
        return self._arm_expected_adjustment_rate

    @arm_expected_adjustment_rate.setter
    def arm_expected_adjustment_rate(self, value: Number) -> None:
        self._set("_arm_expected_adjustment_rate", _decimal("arm_expected_adjustment_rate", value))

    @property
    def arm_maximum_interest_rate(self) -> Decimal:
        """Annual cap, in percent, for the adjusted rate."""
        return self._arm_maximum_interest_rate

    @arm_maximum_interest_rate.setter
    def arm_maximum_interest_rate(self, value: Number) -> None:
        self._set("_arm_maximum_interest_rate", _decimal("arm_maximum_interest_rate", value))

    @property
    def arm_enabled(self) -> bool:
        return bool(
            self._arm_initial_variable_rate
            and self._arm_expected_adjustment_rate
            and self._arm_maximum_interest_rate
        )

    # Derived values

    @property
    def payments_count_per_year(self) -> int:
        return self._frequency.payments_per_year

    @property
    def payments_count_total(self) -> int:
        return self.payments_count_per_year * self._months // 12

    @property
    def repayment_amount(self) -> Decimal:
        """Regular repayment due after the interest-only period."""
        return self._calculated().repayment_amount

    @property
    def total_cost(self) -> Decimal:
        return self._calculated().total_cost

    @property
    def total_interest(self) -> Decimal:
        return self._calculated().total_interest

    @property
    def payments(self) -> Tuple[Payment, ...]:
        return self._calculated().payments
