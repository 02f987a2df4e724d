import importlib
import logging

import pytest

import loan_schedule_web.app as app_module
from loan_schedule_web.app import app

CANONICAL = {"amount": 800_000, "years": 5, "interest_rate": 2.56}


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


class TestFrequencies:
    def test_lists_every_frequency(self, client):
        response = client.get("/api/frequencies")
        assert response.status_code == 200
        data = response.get_json()
        assert {item["name"]: item["payments_per_year"] for item in data} == {
            "yearly": 1,
            "quarterly": 4,
            "monthly": 12,
            "fortnightly": 26,
            "weekly": 52,
        }


class TestSchedule:
    def test_canonical_loan(self, client):
        response = client.post("/api/schedule", json=CANONICAL)
        assert response.status_code == 200
        data = response.get_json()
        assert len(data["schedule"]) == 60
        assert abs(data["schedule"][-1]["balance"]) < 0.01
        assert round(data["summary"]["total_cost"]) == 853144
        assert "truncated" not in data["summary"]
        assert data["configuration"]["months"] == 60

    def test_long_schedule_is_truncated(self, client):
        response = client.post("/api/schedule", json={"amount": 500_000, "years": 20, "interest_rate": 2.49})
        data = response.get_json()
        assert len(data["schedule"]) == 120
        assert data["summary"]["truncated"] == 120
        assert data["summary"]["payments_made"] == 240

    def test_full_schedule_on_request(self, client):
        body = {"amount": 500_000, "years": 20, "interest_rate": 2.49, "show_full_schedule": True}
        data = client.post("/api/schedule", json=body).get_json()
        assert len(data["schedule"]) == 240
        assert "truncated" not in data["summary"]

    def test_string_false_keeps_preview(self, client):
        body = {"amount": 500_000, "years": 20, "interest_rate": 2.49, "show_full_schedule": "false"}
        data = client.post("/api/schedule", json=body).get_json()
        assert len(data["schedule"]) == 120
        assert data["summary"]["truncated"] == 120

    def test_string_true_shows_everything(self, client):
        body = {"amount": 500_000, "years": 20, "interest_rate": 2.49, "show_full_schedule": "yes"}
        data = client.post("/api/schedule", json=body).get_json()
        assert len(data["schedule"]) == 240

    def test_unreadable_flag(self, client):
        response = client.post("/api/schedule", json={**CANONICAL, "show_full_schedule": "maybe"})
        assert response.status_code == 400
        assert "show_full_schedule" in response.get_json()["error"]

    def test_months_only(self, client):
        body = {"amount": 800_000, "months": 36, "interest_rate": 2.56}
        data = client.post("/api/schedule", json=body).get_json()
        assert data["summary"]["payments_total"] == 36

    @pytest.mark.parametrize(
        "first,second",
        [
            ("months", "years"),
            ("interest_only_repayment_count", "interest_only_years"),
            ("arm_fixed_rate_for_repayment_count", "arm_fixed_rate_for_years"),
            ("arm_repayment_count_between_adjustments", "arm_months_between_adjustments"),
        ],
    )
    def test_both_names_of_a_setting_rejected(self, client, first, second):
        response = client.post("/api/schedule", json={**CANONICAL, first: 3, second: 3})
        assert response.status_code == 400
        error = response.get_json()["error"]
        assert first in error
        assert second in error

    def test_unknown_setting(self, client):
        response = client.post("/api/schedule", json={**CANONICAL, "principal": 1})
        assert response.status_code == 400
        assert "Unknown loan setting" in response.get_json()["error"]

    def test_body_must_be_an_object(self, client):
        response = client.post("/api/schedule", json=[1, 2, 3])
        assert response.status_code == 400

    def test_non_finite_amount(self, client):
        response = client.post("/api/schedule", json={**CANONICAL, "amount": "Infinity"})
        assert response.status_code == 400
        assert "finite" in response.get_json()["error"]


class TestCompare:
    def test_extra_payment_variant(self, client):
        response = client.post("/api/compare", json={"base": CANONICAL, "scenario": {"extra_payment": 1000}})
        assert response.status_code == 200
        data = response.get_json()
        assert data["difference"]["payments_made"] == -4
        assert data["scenario1"]["configuration"]["extra_payment"] == 0
        assert data["scenario2"]["configuration"]["extra_payment"] == 1000
        assert data["scenario2"]["configuration"]["months"] == 60

    def test_scenario_may_switch_term_representation(self, client):
        response = client.post("/api/compare", json={"base": CANONICAL, "scenario": {"months": 36}})
        assert response.status_code == 200
        assert response.get_json()["scenario2"]["summary"]["payments_total"] == 36

    def test_base_with_both_term_names(self, client):
        response = client.post("/api/compare", json={"base": {**CANONICAL, "months": 36}})
        assert response.status_code == 400

    def test_missing_base(self, client):
        response = client.post("/api/compare", json={"scenario": {"extra_payment": 1000}})
        assert response.status_code == 400


class TestModuleImport:
    def test_import_leaves_logging_alone(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
        importlib.reload(app_module)
        assert calls == []
