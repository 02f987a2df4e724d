"""Output helpers for the loan schedule calculator.

This module provides simple functions to render amortization schedules and
summaries in a tabular text format. We rely only on built-in printing and
string formatting; amounts are shown with two decimals and no currency.
"""

from __future__ import annotations

from typing import Dict, Iterable

from .data_models import Payment
from .engine import compare_summaries


def print_summary(summary: Dict[str, object]) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Repayment amount   : {summary['repayment_amount']:.2f}")
    print(f"Total interest     : {summary['total_interest']:.2f}")
    print(f"Total cost         : {summary['total_cost']:.2f}")
    print(f"Payments per year  : {summary['payments_per_year']}")
    print(f"Payments scheduled : {summary['payments_total']}")
    print(f"Payments made      : {summary['payments_made']}")
    if summary.get("interest_only_payments"):
        print(f"Interest only      : {summary['interest_only_payments']} payments")
    if summary.get("max_payment"):
        print(f"Highest payment    : {summary['max_payment']:.2f}")
    if summary.get("balloon_payment"):
        print(f"Balloon payment    : {summary['balloon_payment']:.2f}")
    print("-" * 72)


def print_schedule(payments: Iterable[Payment], start: int = 1) -> None:
    """Print the amortization schedule as a simple table.

    Parameters
    ----------
    payments: Iterable[Payment]
        The payments to print, in period order.
    start: int
        Number shown for the first row.
    """
    headers = ["Period", "Payment", "Principal", "Interest", "Balance"]
    print("\t".join(headers))
    for period, payment in enumerate(payments, start=start):
        row = [
            str(period),
            f"{payment.amount:.2f}",
            f"{payment.principal:.2f}",
            f"{payment.interest:.2f}",
            f"{payment.balance:.2f}",
        ]
        print("\t".join(row))


def print_comparison(s1: Dict[str, object], s2: Dict[str, object]) -> None:
    """Print a comparison of two loan summaries side by side.

    The difference column is scenario2 - scenario1. A negative difference
    means the second scenario is cheaper or shorter.
    """
    print("Comparison")
    print("=" * 72)
    print(f"{'Metric':20s} {'Scenario1':>15s} {'Scenario2':>15s} {'Difference':>15s}")
    for key, diff in compare_summaries(s1, s2).items():
        v1 = float(s1[key])
        v2 = float(s2[key])
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {diff:15.2f}")
    print("=" * 72)
