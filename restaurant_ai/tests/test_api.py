from __future__ import annotations

from fastapi.testclient import TestClient

from restaurant_ai.app import app, events, feedback_store

client = TestClient(app)


def _login(c, username):
    c.post("/auth/login", json={"username": username, "password": f"{username}123"})


def _client(username):
    c = TestClient(app)
    _login(c, username)
    return c


def test_health():
    assert client.get("/health").json() == {"status": "ok"}


# ── Recommendations ──────────────────────────────────────────────────────


def test_menu_recommendations():
    c = _client("customer")
    resp = c.get("/recommendations/menu/1", params={"restaurant_id": 1, "limit": 3})
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["recommendations"]) <= 3
    assert body["algorithm"]
    assert 0 <= body["confidence"] <= 100
    assert all(item["is_available"] for item in body["recommendations"])


def test_admin_may_recommend_for_anyone():
    c = _client("admin")
    assert c.get("/recommendations/menu/4", params={"restaurant_id": 1}).status_code == 200


def test_unknown_restaurant_is_404():
    c = _client("admin")
    resp = c.get("/recommendations/menu/1", params={"restaurant_id": 99})
    assert resp.status_code == 404
    body = resp.json()
    assert body["resource"] == "Restaurant"
    assert body["identifier"] == "99"


def test_trending_and_dietary():
    c = _client("customer")
    trending = c.get("/recommendations/trending/1", params={"timeframe": "30d"})
    assert trending.status_code == 200
    assert len(trending.json()) <= 10

    dietary = c.get("/recommendations/dietary/1/vegetarian")
    assert dietary.status_code == 200
    assert dietary.json()
    assert all(item["is_vegetarian"] for item in dietary.json())

    assert c.get("/recommendations/dietary/1/paleo").status_code == 422


def test_feedback_recorded():
    feedback_store.clear_feedback()
    c = _client("customer")
    resp = c.post("/feedback", json={"menu_item_id": 3, "is_positive": True})
    assert resp.status_code == 200
    assert resp.json() == {"status": "recorded", "total_feedback": 1}
    assert feedback_store.get_feedback()[0]["user_id"] == 1


def test_feedback_validation():
    c = _client("customer")
    assert c.post("/feedback", json={"menu_item_id": 999, "is_positive": True}).status_code == 404
    assert c.post("/feedback", json={"is_positive": True}).status_code == 422


# ── Pricing ──────────────────────────────────────────────────────────────


def test_dynamic_price():
    c = _client("customer")
    resp = c.get("/pricing/dynamic/1", params={"restaurant_id": 1})
    assert resp.status_code == 200
    body = resp.json()
    assert body["original_price"] == 12.5
    assert 10.0 <= body["dynamic_price"] <= 15.63
    assert c.get("/pricing/dynamic/999", params={"restaurant_id": 1}).status_code == 404


def test_pricing_optimization_for_owner():
    c = _client("owner")
    resp = c.get("/pricing/optimization/1")
    assert resp.status_code == 200
    assert len(resp.json()) <= 10
    assert c.get("/pricing/optimization/2").status_code == 403


def test_pricing_ab_test_flow():
    c = _client("owner")
    created = c.post("/pricing/ab-test", json={"menu_item_id": 4, "test_prices": [22.0, 26.0]})
    assert created.status_code == 200
    test = created.json()
    assert test["original_price"] == 24.0
    assert test["status"] == "active"

    results = c.get(f"/pricing/ab-test/{test['test_id']}")
    assert results.status_code == 200
    assert {v["variant"] for v in results.json()["variants"]} == {"control", "price_1", "price_2"}
    assert results.json()["winner"] is None

    assert c.get("/pricing/ab-test/pricing_test_0_0").status_code == 404
    assert c.post("/pricing/ab-test", json={"menu_item_id": 4, "test_prices": []}).status_code == 422


# ── Analytics ────────────────────────────────────────────────────────────


def test_analytics_endpoints():
    c = _client("owner")
    demand = c.get("/analytics/predict-demand/1", params={"timeframe": "4h"})
    assert demand.status_code == 200
    assert demand.json()["timeframe"] == "4h"
    assert demand.json()["value"] >= 0

    revenue = c.get("/analytics/predict-revenue/1")
    assert revenue.status_code == 200
    assert revenue.json()["timeframe"] == "7d"

    segments = c.get("/analytics/customer-segments/1")
    assert [s["name"] for s in segments.json()] == [
        "VIP Customers", "Occasional Diners", "Budget-Conscious", "New Customers",
    ]

    churn = c.get("/analytics/churn-prediction/1").json()
    scores = [p["risk_score"] for p in churn]
    assert scores == sorted(scores, reverse=True)

    assert c.get("/analytics/pricing-optimization/1").status_code == 200


def test_staffing():
    c = _client("owner")
    resp = c.post("/analytics/predict-staffing/1", json={
        "target_date": "2024-12-25",
        "shifts": [
            {"start": "11:00", "end": "15:00", "role": "server"},
            {"start": "17:00", "end": "22:00", "role": "manager"},
        ],
    })
    assert resp.status_code == 200
    recs = resp.json()
    assert [r["shift"]["role"] for r in recs] == ["server", "manager"]
    assert all(r["recommended_staff"] >= 1 for r in recs)
    assert recs[1]["reasoning"][-1] == "Holiday adjustment (+30%)"

    assert c.post("/analytics/predict-staffing/1", json={"shifts": []}).status_code == 422
    bad_time = {"shifts": [{"start": "9am", "end": "5pm", "role": "server"}]}
    assert c.post("/analytics/predict-staffing/1", json=bad_time).status_code == 422


# ── Chat ─────────────────────────────────────────────────────────────────


def test_chat_greeting():
    c = _client("customer")
    resp = c.post("/chat", json={"message": "hello", "restaurant_id": 1})
    assert resp.status_code == 200
    body = resp.json()
    assert body["intent"] == "greeting"
    assert body["message"].startswith("Hello Alice!")


def test_chat_validation():
    c = _client("customer")
    assert c.post("/chat", json={"message": "", "restaurant_id": 1}).status_code == 422


def test_chat_disabled_returns_503():
    admin = _client("admin")
    assert admin.put("/config", json={"chatbot": {"enabled": False}}).status_code == 200
    try:
        resp = _client("customer").post("/chat", json={"message": "hello", "restaurant_id": 1})
        assert resp.status_code == 503
    finally:
        admin.put("/config", json={"chatbot": {"enabled": True}})


# ── Orchestration ────────────────────────────────────────────────────────


def test_comprehensive_insights():
    c = _client("owner")
    resp = c.get("/insights/comprehensive/1")
    assert resp.status_code == 200
    assert set(resp.json()) == {"recommendations", "pricing", "analytics", "performance", "alerts", "suggestions"}


def test_optimize():
    c = _client("owner")
    resp = c.post("/optimize/1")
    assert resp.status_code == 200
    assert "performance_monitoring" in resp.json()["tasks_run"]
    assert resp.json()["errors"] == []


def test_config_read_and_update():
    owner = _client("owner")
    assert owner.get("/config").json()["pricing"]["max_price_increase"] == 0.25
    assert owner.put("/config", json={"pricing": {"max_price_increase": 0.1}}).status_code == 403

    admin = _client("admin")
    try:
        resp = admin.put("/config", json={"pricing": {"max_price_increase": 0.1}})
        assert resp.status_code == 200
        assert resp.json()["pricing"]["max_price_increase"] == 0.1
        assert resp.json()["pricing"]["max_price_decrease"] == 0.2
    finally:
        admin.put("/config", json={"pricing": {"max_price_increase": 0.25}})

    assert admin.put("/config", json={"marketing": {}}).status_code == 422
    assert admin.put("/config", json={"pricing": {"max_price_increase": 5}}).status_code == 422
    weights = {"recommendations": {"default_weights": {"pricing": 0.1}}}
    assert admin.put("/config", json=weights).status_code == 422


def test_system_health():
    resp = _client("admin").get("/system/health")
    assert resp.status_code == 200
    assert resp.json()["overall"] == "healthy"
    assert set(resp.json()["services"]) == {"recommendations", "pricing", "analytics", "chatbot"}


def test_export():
    resp = _client("owner").get("/export/1")
    assert resp.status_code == 200
    assert set(resp.json()) == {"config", "performance", "insights", "exported_at"}


def test_telemetry_counts_engine_calls():
    events.clear_events()
    _client("customer").get("/pricing/dynamic/2", params={"restaurant_id": 1})
    _client("customer").post("/chat", json={"message": "Tell me a joke", "restaurant_id": 1})

    resp = _client("admin").get("/telemetry")
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_requests"] == 2
    assert body["engines"]["pricing"]["requests"] == 1
    assert body["chatbot_fallback_rate"] == 100.0
