"""Тесты HTTP API на in-memory единице работы."""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from main import app
from pricing.domain.models import ProductRule
from pricing.entrypoints.api.dependencies import get_pricing_uow
from promotions.domain.models import Promotion

from conftest import NOW

API = "/api/v1"


@pytest.fixture
def uow(make_uow):
    """In-memory UoW с правилом 5% на товар 1 и двумя акциями."""
    return make_uow(
        rules=[
            ProductRule(
                id=1,
                name="Paracetamol volume",
                product_id=1,
                discount_value=Decimal("5"),
                created_at=NOW - timedelta(days=1),
            )
        ],
        promotions=[
            Promotion(
                id=1,
                code="SAVE20",
                value=Decimal("20"),
                maximum_discount_amount=Decimal("15.00"),
                max_usage_count=1,
            ),
            Promotion(
                id=2,
                code="CHAIN",
                requires_code=False,
                value=Decimal("0"),
                applies_to_all_customers=False,
                customer_id=10,
                apply_to_child_customers=True,
            ),
        ],
    )


@pytest.fixture
def client(uow):
    """Тестовый клиент без запуска lifespan (база не нужна)."""
    app.dependency_overrides[get_pricing_uow] = lambda: uow
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_check(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "API is running"}


class TestPricingApi:
    """Эндпоинты расчета цен."""

    def test_calculate(self, client):
        response = client.post(
            f"{API}/pricing/calculate/",
            json={"product_id": 1, "customer_id": 1, "quantity": 5, "promotion_code": "SAVE20"},
        )

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["final_unit_price"]) == Decimal("82.50")
        assert Decimal(body["line_total"]) == Decimal("412.50")
        assert body["applied_rule_id"] == 1
        assert body["applied_promotion_code"] == "SAVE20"

    def test_auto_apply_setting(self, client):
        """Настройка читается при создании калькулятора на каждый запрос."""
        payload = {"product_id": 2, "customer_id": 11, "quantity": 1}
        setting = "src.pricing.services.calculator.get_auto_apply_promotions"

        with patch(setting, return_value=False):
            off = client.post(f"{API}/pricing/calculate/", json=payload).json()
        with patch(setting, return_value=True):
            on = client.post(f"{API}/pricing/calculate/", json=payload).json()

        assert off["applied_promotion_code"] is None
        assert on["applied_promotion_code"] == "CHAIN"

    def test_calculate_unknown_product(self, client):
        response = client.post(
            f"{API}/pricing/calculate/", json={"product_id": 404, "customer_id": 1, "quantity": 1}
        )

        assert response.status_code == 404
        assert response.json()["type"] == "not_found_error"

    def test_calculate_rejects_zero_quantity(self, client):
        response = client.post(
            f"{API}/pricing/calculate/", json={"product_id": 1, "customer_id": 1, "quantity": 0}
        )

        assert response.status_code == 422

    def test_batch(self, client):
        response = client.post(
            f"{API}/pricing/calculate/batch/",
            json={
                "customer_id": 1,
                "items": [{"product_id": 1, "quantity": 5}, {"product_id": 2, "quantity": 10}],
                "promotion_code": "missing",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert [line["product_id"] for line in body] == [1, 2]
        assert all(line["promotion_error"] == "not_found" for line in body)

    def test_batch_empty(self, client):
        response = client.post(
            f"{API}/pricing/calculate/batch/", json={"customer_id": 1, "items": []}
        )

        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_tiers(self, client):
        response = client.get(f"{API}/pricing/tiers/")

        assert response.status_code == 200
        assert [t["tier"] for t in response.json()] == ["A", "B", "C"]

    def test_applicable_rules(self, client):
        response = client.get(f"{API}/pricing/rules/applicable/1")

        assert response.status_code == 200
        assert response.json()[0]["scope"] == "product"
        assert client.get(f"{API}/pricing/rules/applicable/404").status_code == 404

    def test_get_price_rule(self, client):
        response = client.get(f"{API}/pricing/rules/1")

        assert response.status_code == 200
        assert response.json()["name"] == "Paracetamol volume"
        assert response.json()["product_id"] == 1

    def test_get_price_rule_not_found(self, client):
        response = client.get(f"{API}/pricing/rules/404")

        assert response.status_code == 404
        assert response.json()["type"] == "not_found_error"


class TestPromotionsApi:
    """Эндпоинты акций."""

    def test_validate(self, client):
        response = client.post(
            f"{API}/promotions/validate/",
            json={"code": "save20", "customer_id": 1, "order_total": "427.50"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["is_valid"] is True
        assert Decimal(body["estimated_discount"]) == Decimal("15.00")

    def test_validate_unknown_customer(self, client):
        response = client.post(
            f"{API}/promotions/validate/",
            json={"code": "SAVE20", "customer_id": 404, "order_total": "10"},
        )

        assert response.status_code == 404

    def test_available(self, client):
        assert [p["code"] for p in client.get(f"{API}/promotions/available/11").json()] == ["CHAIN"]
        assert client.get(f"{API}/promotions/available/3").json() == []

    def test_record_usage(self, client, uow):
        url = f"{API}/promotions/1/usages/"

        first = client.post(url, json={"customer_id": 1, "order_id": 500, "discount_applied": "15.00"})
        retry = client.post(url, json={"customer_id": 1, "order_id": 500})
        over = client.post(url, json={"customer_id": 2, "order_id": 501})

        assert first.status_code == 201
        assert first.json()["status"] == "recorded"
        assert retry.json()["status"] == "already_recorded"
        assert over.status_code == 409
        assert over.json()["detail"]["status"] == "limit_exceeded"
        assert uow.promotions.promotions[1].current_usage_count == 1

    def test_record_usage_unknown_promotion(self, client):
        response = client.post(
            f"{API}/promotions/404/usages/", json={"customer_id": 1, "order_id": 1}
        )

        assert response.status_code == 404
