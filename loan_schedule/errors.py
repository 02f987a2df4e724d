"""Exceptions raised by the loan schedule calculator."""


class InvalidConfiguration(ValueError):
    """A loan configuration cannot produce a meaningful schedule.

    Raised for values that are not finite numbers (NaN, infinity), for
    arithmetic that overflows while the schedule is built, and for settings
    that do not exist or cannot be interpreted, such as an unknown repayment
    frequency.
    """
