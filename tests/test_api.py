"""
Tests for the calculation API endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from fincalc.main import app


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


class TestHealth:
    """Health endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestTVMEndpoint:
    """POST /api/calculate/tvm."""

    def test_solve_future_value(self, client):
        response = client.post(
            "/api/calculate/tvm",
            json={"present_value": -1000, "payment": 0, "annual_rate": 6, "years": 5},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "converged"
        assert abs(data["value"] - 1338.23) < 0.01

    def test_solve_rate_monthly(self, client):
        response = client.post(
            "/api/calculate/tvm",
            json={
                "present_value": 200000,
                "future_value": 0,
                "payment": -1199.10,
                "years": 30,
                "frequency": "monthly",
            },
        )
        assert response.status_code == 200
        assert abs(response.json()["value"] - 6.0) < 0.001

    def test_two_unknowns_rejected(self, client):
        """Rejected solver inputs come back as 400 with the typed status."""
        response = client.post(
            "/api/calculate/tvm",
            json={"present_value": -1000, "annual_rate": 6, "years": 5},
        )
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["status"] == "invalid-input"
        assert detail["message"]

    def test_unknown_frequency(self, client):
        response = client.post(
            "/api/calculate/tvm",
            json={"present_value": -1000, "payment": 0, "annual_rate": 6, "years": 5, "frequency": "hourly"},
        )
        assert response.status_code == 422


class TestBondEndpoints:
    """Bond pricing and yield."""

    def test_price(self, client):
        response = client.post(
            "/api/calculate/bond/price",
            json={"face_value": 1000, "coupon_rate": 5, "years_to_maturity": 10, "market_rate": 6},
        )
        assert response.status_code == 200
        data = response.json()
        assert abs(data["price"] - 925.61) < 0.01
        assert data["premium_discount"] < 0
        assert 0 < data["modified_duration"] < data["macaulay_duration"] < 10
        assert len(data["cash_flows"]) == 20

    def test_price_invalid_bond(self, client):
        response = client.post(
            "/api/calculate/bond/price",
            json={"face_value": 0, "coupon_rate": 5, "years_to_maturity": 10, "market_rate": 6},
        )
        assert response.status_code == 400

    def test_yield(self, client):
        response = client.post(
            "/api/calculate/bond/yield",
            json={"face_value": 1000, "coupon_rate": 5, "years_to_maturity": 10, "price": 925.61},
        )
        assert response.status_code == 200
        data = response.json()
        assert abs(data["yield_to_maturity"]["value"] - 6.0) < 0.001
        assert abs(data["current_yield"] - 5.4018) < 0.001

    def test_yield_invalid_bond_matches_price_status(self, client):
        """An invalid bond is a 400 on both bond routes."""
        terms = {"face_value": 0, "coupon_rate": 5, "years_to_maturity": 10}
        price = client.post("/api/calculate/bond/price", json={**terms, "market_rate": 6})
        ytm = client.post("/api/calculate/bond/yield", json={**terms, "price": 950})
        assert price.status_code == 400
        assert ytm.status_code == 400
        assert ytm.json()["detail"]["status"] == "invalid-input"

    def test_yield_non_positive_price(self, client):
        response = client.post(
            "/api/calculate/bond/yield",
            json={"face_value": 1000, "coupon_rate": 5, "years_to_maturity": 10, "price": 0},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["status"] == "no-convergence"


class TestAmortizationEndpoint:
    """POST /api/calculate/amortization."""

    def test_mortgage(self, client):
        response = client.post(
            "/api/calculate/amortization",
            json={"principal": 200000, "annual_rate": 6, "years": 30},
        )
        assert response.status_code == 200
        data = response.json()
        assert len(data["schedule"]) == 360
        assert abs(data["summary"]["base_payment"] - 1199.10) < 0.01
        assert abs(data["total_interest"] - 231676) < 1
        assert abs(data["total_principal"] - 200000) < 0.01

    def test_down_payment_extra_payment_and_dates(self, client):
        response = client.post(
            "/api/calculate/amortization",
            json={
                "principal": 250000,
                "annual_rate": 6,
                "years": 30,
                "down_payment": 50000,
                "extra_payment": 200,
                "start_date": "2025-01-01",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["loan_amount"] == 200000
        assert data["summary"]["periods_saved"] > 0
        assert len(data["schedule"]) == data["summary"]["number_of_payments"]
        assert data["schedule"][0]["payment_date"] == "2025-01-01"
        assert data["schedule"][1]["payment_date"] == "2025-02-01"

    def test_invalid_loan(self, client):
        response = client.post(
            "/api/calculate/amortization",
            json={"principal": 100000, "annual_rate": 6, "years": 30, "down_payment": 100000},
        )
        assert response.status_code == 400


class TestDepreciationEndpoint:
    """POST /api/calculate/depreciation."""

    def test_straight_line(self, client):
        response = client.post(
            "/api/calculate/depreciation",
            json={"cost": 10000, "salvage": 1000, "life": 5, "current_year": 2},
        )
        assert response.status_code == 200
        data = response.json()
        assert [row["depreciation"] for row in data["schedule"]] == [1800.0] * 5
        assert data["total_depreciation"] == 9000.0
        assert data["current_year"]["book_value"] == 6400.0

    def test_macrs(self, client):
        response = client.post(
            "/api/calculate/depreciation",
            json={"cost": 10000, "life": 5, "method": "macrs", "macrs_class": "5-year"},
        )
        assert response.status_code == 200
        assert len(response.json()["schedule"]) == 6

    def test_macrs_without_class(self, client):
        response = client.post(
            "/api/calculate/depreciation",
            json={"cost": 10000, "life": 5, "method": "macrs"},
        )
        assert response.status_code == 400
        assert "property class" in response.json()["detail"]

    def test_declining_balance(self, client):
        response = client.post(
            "/api/calculate/depreciation",
            json={"cost": 10000, "salvage": 1000, "life": 5, "method": "declining_balance"},
        )
        assert response.status_code == 200
        assert response.json()["schedule"][0]["depreciation"] == 4000.0


class TestCashFlowEndpoints:
    """NPV and IRR."""

    def test_npv(self, client):
        response = client.post(
            "/api/calculate/npv",
            json={"cash_flows": [-1000, 300, 300, 300, 300, 300], "discount_rate": 10},
        )
        assert response.status_code == 200
        data = response.json()
        assert abs(data["npv"] - 137.24) < 0.01
        assert abs(data["profitability_index"] - 1.1372) < 0.001

    def test_calculate_irr(self, client):
        response = client.post(
            "/api/calculate/irr",
            json={"cash_flows": [-1000, 300, 300, 300, 300, 300]},
        )
        assert response.status_code == 200
        data = response.json()
        assert abs(data["irr"]["value"] - 15.24) < 0.01
        assert data["irr"]["status"] == "converged"
        assert data["multiple"] == 1.5
        assert data["profit"] == 500
        assert abs(data["payback_period"] - 10 / 3) < 1e-9

    def test_calculate_irr_ambiguous(self, client):
        response = client.post(
            "/api/calculate/irr",
            json={"cash_flows": [-100, 230, -132], "guess": 15},
        )
        assert response.status_code == 200
        assert response.json()["irr"]["status"] == "multiple-roots-ambiguous"

    def test_calculate_irr_invalid_cash_flows(self, client):
        """No negative values means no IRR."""
        response = client.post(
            "/api/calculate/irr",
            json={"cash_flows": [100, 100, 100]},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["status"] == "out-of-domain"
