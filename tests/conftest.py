"""Shared fixtures for the loan schedule tests.

Canonical loan: 800K principal, 5 years, 2.56% annual rate, monthly repayments.
"""

import pytest

from loan_schedule.configuration import LoanConfiguration


def new_loan(amount=800_000, years=5, rate=2.56, **settings) -> LoanConfiguration:
    loan = LoanConfiguration()
    loan.amount = amount
    loan.years = years
    loan.interest_rate = rate
    loan.apply(settings)
    return loan


@pytest.fixture
def canonical_loan() -> LoanConfiguration:
    return new_loan()


@pytest.fixture
def make_loan():
    return new_loan
