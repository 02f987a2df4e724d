"""JSON web API for the loan schedule calculator.

The endpoints accept loan settings as a JSON object whose keys are the
``LoanConfiguration`` property names, applied in the order they appear, and
return the summary and schedule computed by the ``loan_schedule`` package.
"""

import logging
import os
from decimal import Decimal

from flask import Flask, jsonify, request

from loan_schedule.configuration import LoanConfiguration
from loan_schedule.data_models import RepaymentFrequency
from loan_schedule.engine import compare_summaries, summarize
from loan_schedule.errors import InvalidConfiguration
from loan_schedule.utils import parse_bool

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["PREVIEW_ROWS"] = int(os.environ.get("LOAN_SCHEDULE_PREVIEW_ROWS", "120"))

# Both names of one setting cannot share a body: JSON objects carry no
# order, so there is no "later key wins".
EXCLUSIVE_SETTINGS = (
    ("months", "years"),
    ("interest_only_repayment_count", "interest_only_years"),
    ("arm_fixed_rate_for_repayment_count", "arm_fixed_rate_for_years"),
    ("arm_repayment_count_between_adjustments", "arm_months_between_adjustments"),
)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidConfiguration("Request body must be a JSON object")
    return data


def _loan_settings(data) -> dict:
    if not isinstance(data, dict):
        raise InvalidConfiguration("Loan settings must be a JSON object")
    for first, second in EXCLUSIVE_SETTINGS:
        if first in data and second in data:
            raise InvalidConfiguration(f"Use either {first} or {second}, not both")
    return data


def _flag(data: dict, name: str) -> bool:
    try:
        return parse_bool(data.pop(name, False))
    except ValueError as exc:
        raise InvalidConfiguration(f"{name}: {exc}") from exc


def _serialize_settings(configuration: LoanConfiguration) -> dict:
    return {
        key: float(value) if isinstance(value, Decimal) else value
        for key, value in configuration.as_dict().items()
    }


def _serialize_schedule(payments):
    """Convert payments into JSON-serialisable dictionaries for charts."""
    serialized = []
    for period, payment in enumerate(payments, start=1):
        serialized.append(
            {
                "period": period,
                "amount": float(payment.amount),
                "principal": float(payment.principal),
                "interest": float(payment.interest),
                "balance": float(payment.balance),
            }
        )
    return serialized


def _summaries_for_view(summary: dict, payments, show_full_schedule: bool):
    if show_full_schedule:
        return summary, payments
    preview = payments[: app.config["PREVIEW_ROWS"]]
    if len(payments) > len(preview):
        summary["truncated"] = len(payments) - len(preview)
    return summary, preview


@app.errorhandler(InvalidConfiguration)
def invalid_configuration(exc):
    logger.info("Rejected loan settings: %s", exc)
    return jsonify({"error": str(exc)}), 400


@app.get("/api/frequencies")
def frequencies():
    return jsonify(
        [{"name": f.value, "payments_per_year": f.payments_per_year} for f in RepaymentFrequency]
    )


@app.post("/api/schedule")
def schedule():
    data = dict(_json_body())
    show_full_schedule = _flag(data, "show_full_schedule")
    configuration = LoanConfiguration.from_mapping(_loan_settings(data))
    summary, payments = _summaries_for_view(
        summarize(configuration), configuration.payments, show_full_schedule
    )
    return jsonify(
        {
            "configuration": _serialize_settings(configuration),
            "summary": summary,
            "schedule": _serialize_schedule(payments),
        }
    )


@app.post("/api/compare")
def compare():
    data = _json_body()
    base = LoanConfiguration.from_mapping(_loan_settings(data.get("base")))
    variant = base.clone().apply(_loan_settings(data.get("scenario", {})))
    summary1 = summarize(base)
    summary2 = summarize(variant)
    return jsonify(
        {
            "scenario1": {"configuration": _serialize_settings(base), "summary": summary1},
            "scenario2": {"configuration": _serialize_settings(variant), "summary": summary2},
            "difference": compare_summaries(summary1, summary2),
        }
    )


if __name__ == "__main__":
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
    print("Starting loan schedule API...")
    app.run(debug=os.environ.get("FLASK_DEBUG") == "1")
