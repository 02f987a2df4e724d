"""Command-line interface for the loan schedule calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute full amortization schedules, view summaries or
compare a loan with a variant of itself. Results can be printed to the
terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from decimal import Decimal
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import click

from .configuration import LoanConfiguration
from .data_models import Payment, RepaymentFrequency
from .engine import compare_summaries, summarize
from .errors import InvalidConfiguration
from .formatter import print_comparison, print_schedule, print_summary
from .utils import decimal_from_str

MAX_PRINTED_ROWS = 120

# Settings whose values are money amounts and accept k/m suffixes.
_AMOUNT_SETTINGS = {"amount", "extra_payment"}


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000"), thousands separators ("500,000") and
    shorthand with ``k``/``m`` suffixes (e.g., "500k" meaning 500_000).
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def parse_override_strings(values: Iterable[str]) -> Dict[str, Any]:
    """Parse ``NAME=VALUE`` items into an ordered settings mapping."""
    overrides: Dict[str, Any] = {}
    for item in values:
        name, sep, raw = item.partition("=")
        name = name.strip().replace("-", "_")
        if not sep or not name:
            raise click.BadParameter(f"Override must be in NAME=VALUE format; got {item}")
        raw = raw.strip()
        overrides.pop(name, None)
        overrides[name] = parse_amount(raw) if name in _AMOUNT_SETTINGS else raw
    return overrides


def _exclusive(first: Tuple[str, Any], second: Tuple[str, Any]) -> None:
    if first[1] is not None and second[1] is not None:
        raise click.BadParameter(f"Use either {first[0]} or {second[0]}, not both")


def build_config_from_options(
    amount: str,
    rate: float,
    months: Optional[int],
    years: Optional[float],
    frequency: str,
    extra_payment: Optional[str],
    interest_only_count: Optional[int],
    interest_only_years: Optional[float],
    yearly_basis: bool,
    rounding: int,
    arm_fixed_count: Optional[int],
    arm_fixed_years: Optional[float],
    arm_initial_rate: Optional[float],
    arm_adjustment_count: Optional[int],
    arm_adjustment_months: Optional[int],
    arm_step: Optional[float],
    arm_max_rate: Optional[float],
) -> LoanConfiguration:
    if months is None and years is None:
        raise click.BadParameter("Loan term is required; pass --months or --years")
    _exclusive(("--months", months), ("--years", years))
    _exclusive(("--interest-only-count", interest_only_count), ("--interest-only-years", interest_only_years))
    _exclusive(("--arm-fixed-count", arm_fixed_count), ("--arm-fixed-years", arm_fixed_years))
    _exclusive(("--arm-adjustment-count", arm_adjustment_count), ("--arm-adjustment-months", arm_adjustment_months))

    settings: Dict[str, Any] = {
        "amount": parse_amount(amount),
        "interest_rate": rate,
        "repayment_frequency": frequency,
        "calculate_sub_monthly_from_yearly": yearly_basis,
        "rounding": rounding,
    }
    optional = [
        ("months", months),
        ("years", years),
        ("extra_payment", parse_amount(extra_payment) if extra_payment else None),
        ("interest_only_repayment_count", interest_only_count),
        ("interest_only_years", interest_only_years),
        ("arm_fixed_rate_for_repayment_count", arm_fixed_count),
        ("arm_fixed_rate_for_years", arm_fixed_years),
        ("arm_initial_variable_rate", arm_initial_rate),
        ("arm_repayment_count_between_adjustments", arm_adjustment_count),
        ("arm_months_between_adjustments", arm_adjustment_months),
        ("arm_expected_adjustment_rate", arm_step),
        ("arm_maximum_interest_rate", arm_max_rate),
    ]
    settings.update((name, value) for name, value in optional if value is not None)
    try:
        return LoanConfiguration.from_mapping(settings)
    except InvalidConfiguration as exc:
        raise click.BadParameter(str(exc))


def loan_options(func: Callable) -> Callable:
    """Attach the loan settings options shared by every command."""
    options = [
        click.option("--amount", "-a", "amount", required=True, help="Loan amount (accepts k/m suffixes)"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--months", "-m", "months", type=int, help="Loan term in months"),
        click.option("--years", "-y", "years", type=float, help="Loan term in years"),
        click.option(
            "--frequency",
            "-f",
            "frequency",
            type=click.Choice([f.value for f in RepaymentFrequency]),
            default=RepaymentFrequency.MONTHLY.value,
            help="Repayment frequency",
        ),
        click.option("--extra-payment", "-e", "extra_payment", help="Extra amount paid with every repayment"),
        click.option("--interest-only-count", "interest_only_count", type=int, help="Number of interest-only repayments"),
        click.option("--interest-only-years", "interest_only_years", type=float, help="Interest-only period in years"),
        click.option(
            "--yearly-basis",
            "yearly_basis",
            is_flag=True,
            help="Amortize weekly/fortnightly repayments directly instead of dividing the monthly repayment",
        ),
        click.option("--rounding", "rounding", type=int, default=8, show_default=True, help="Fractional digits kept in calculations"),
        click.option("--arm-fixed-count", "arm_fixed_count", type=int, help="ARM: repayments at the initial fixed rate"),
        click.option("--arm-fixed-years", "arm_fixed_years", type=float, help="ARM: years at the initial fixed rate"),
        click.option("--arm-initial-rate", "arm_initial_rate", type=float, help="ARM: initial variable rate (percent)"),
        click.option("--arm-adjustment-count", "arm_adjustment_count", type=int, help="ARM: repayments between adjustments"),
        click.option("--arm-adjustment-months", "arm_adjustment_months", type=int, help="ARM: months between adjustments"),
        click.option("--arm-step", "arm_step", type=float, help="ARM: rate added at every adjustment (percent)"),
        click.option("--arm-max-rate", "arm_max_rate", type=float, help="ARM: maximum interest rate (percent)"),
    ]

    @wraps(func)
    def wrapper(**kwargs: Any) -> Any:
        loan_keys = [
            "amount", "rate", "months", "years", "frequency", "extra_payment",
            "interest_only_count", "interest_only_years", "yearly_basis", "rounding",
            "arm_fixed_count", "arm_fixed_years", "arm_initial_rate", "arm_adjustment_count",
            "arm_adjustment_months", "arm_step", "arm_max_rate",
        ]
        loan_kwargs = {key: kwargs.pop(key) for key in loan_keys}
        return func(build_config_from_options(**loan_kwargs), **kwargs)

    for option in reversed(options):
        wrapper = option(wrapper)
    return wrapper


def _payment_record(period: int, payment: Payment) -> Dict[str, Any]:
    return {
        "period": period,
        "amount": float(payment.amount),
        "principal": float(payment.principal),
        "interest": float(payment.interest),
        "balance": float(payment.balance),
    }


def _settings_record(configuration: LoanConfiguration) -> Dict[str, Any]:
    return {
        key: float(value) if isinstance(value, Decimal) else value
        for key, value in configuration.as_dict().items()
    }


def export_to_json(path: Path, configuration: LoanConfiguration, summary: Dict[str, Any]) -> None:
    """Export settings, summary and schedule to a JSON file."""
    data = {
        "configuration": _settings_record(configuration),
        "summary": summary,
        "schedule": [_payment_record(i, p) for i, p in enumerate(configuration.payments, start=1)],
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, payments: Iterable[Payment]) -> None:
    """Export schedule to a CSV file."""
    header = ["Period", "Payment", "Principal", "Interest", "Balance"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for period, payment in enumerate(payments, start=1):
            writer.writerow(
                [
                    period,
                    float(payment.amount),
                    float(payment.principal),
                    float(payment.interest),
                    float(payment.balance),
                ]
            )


def _summarize(configuration: LoanConfiguration) -> Dict[str, object]:
    try:
        return summarize(configuration)
    except InvalidConfiguration as exc:
        raise click.ClickException(str(exc))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log calculation details")
def cli(verbose: bool) -> None:
    """A command-line loan amortization calculator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--full", "full", is_flag=True, help=f"Print every row instead of the first {MAX_PRINTED_ROWS}")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(configuration: LoanConfiguration, full: bool, output: Optional[str]) -> None:
    """Compute and print the full amortization schedule."""
    summary_data = _summarize(configuration)
    payments = configuration.payments
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, configuration, summary_data)
            click.echo(f"Schedule exported to {path}")
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, payments)
            click.echo(f"Schedule exported to {path}")
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        return

    print_summary(summary_data)
    # Limit schedule length printed to avoid flooding the terminal
    if not full and len(payments) > MAX_PRINTED_ROWS:
        click.echo(f"Schedule has {len(payments)} rows; showing first {MAX_PRINTED_ROWS} rows.")
        print_schedule(payments[:MAX_PRINTED_ROWS])
    else:
        print_schedule(payments)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(configuration: LoanConfiguration, output: Optional[str]) -> None:
    """Compute and print only the summary metrics for a loan."""
    summary_data = _summarize(configuration)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"configuration": _settings_record(configuration), "summary": summary_data}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data)


@cli.command()
@loan_options
@click.option(
    "--with",
    "overrides",
    multiple=True,
    required=True,
    help="Setting changed in the second scenario, NAME=VALUE (repeatable)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the comparison as JSON")
def compare(configuration: LoanConfiguration, overrides: Tuple[str, ...], as_json: bool) -> None:
    """Compare a loan with a variant of itself.

    The second scenario starts as a copy of the first and applies every
    ``--with`` setting in order, for example:

        loan-schedule compare -a 800k -y 5 -r 2.56 --with extra_payment=1000
    """
    variant = configuration.clone()
    try:
        variant.apply(parse_override_strings(overrides))
    except InvalidConfiguration as exc:
        raise click.BadParameter(str(exc))

    summary1 = _summarize(configuration)
    summary2 = _summarize(variant)
    if as_json:
        payload = {
            "scenario1": summary1,
            "scenario2": summary2,
            "difference": compare_summaries(summary1, summary2),
        }
        click.echo(json.dumps(payload, indent=2))
    else:
        print_comparison(summary1, summary2)


if __name__ == "__main__":
    cli()
