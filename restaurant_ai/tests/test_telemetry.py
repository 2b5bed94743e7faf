from __future__ import annotations

import time

from restaurant_ai.telemetry import EventStore, FeedbackStore, compute_performance_metrics


def test_event_store_keeps_newest_events():
    store = EventStore(max_events=3)
    for i in range(5):
        store.record_event("page_view", {"index": i})
    events = store.get_events()
    assert [e["index"] for e in events] == [2, 3, 4]
    assert all(e["type"] == "page_view" for e in events)

    store.clear_events()
    assert store.get_events() == []


def test_engine_call_records_timing():
    store = EventStore()
    store.record_engine_call("pricing", "get_dynamic_price", time.time(), confidence=66)
    event = store.get_events()[0]
    assert event["type"] == "engine_call"
    assert event["engine"] == "pricing"
    assert event["confidence"] == 66
    assert event["fallback"] is False
    assert event["response_time_ms"] >= 0


def test_feedback_store_counts():
    store = FeedbackStore()
    assert store.record_feedback(1, 3, True) == 1
    assert store.record_feedback(4, 3, False, variant="price_1") == 2
    assert store.get_feedback()[1]["variant"] == "price_1"
    store.clear_feedback()
    assert store.get_feedback() == []


def test_performance_metrics_empty():
    metrics = compute_performance_metrics([], [])
    assert metrics["total_requests"] == 0
    assert metrics["engines"] == {}
    assert metrics["recommendation_satisfaction_rate"] == 0.0
    assert metrics["chatbot_fallback_rate"] == 0.0
    assert metrics["feedback_summary"] == {"total": 0, "positive": 0, "negative": 0, "satisfaction_rate": 0.0}


def test_performance_metrics_per_engine():
    events = [
        {"type": "engine_call", "engine": "chatbot", "operation": "process_message",
         "response_time_ms": 10.0, "confidence": 100, "fallback": False},
        {"type": "engine_call", "engine": "chatbot", "operation": "process_message",
         "response_time_ms": 30.0, "confidence": 0, "fallback": True},
        {"type": "engine_call", "engine": "pricing", "operation": "get_dynamic_price",
         "response_time_ms": 4.0, "confidence": 50, "fallback": False},
        {"type": "engine_call", "engine": "pricing", "operation": "get_price_optimization",
         "response_time_ms": 8.0, "confidence": None, "fallback": False},
        {"type": "login", "username": "owner"},
    ]
    feedback = [{"is_positive": True}, {"is_positive": True}, {"is_positive": False}]

    metrics = compute_performance_metrics(events, feedback)

    assert metrics["total_requests"] == 4
    assert list(metrics["engines"]) == ["chatbot", "pricing"]
    chatbot = metrics["engines"]["chatbot"]
    assert chatbot["requests"] == 2
    assert chatbot["avg_response_time_ms"] == 20.0
    assert chatbot["avg_confidence"] == 50.0
    assert chatbot["top_operations"] == [{"name": "process_message", "count": 2}]
    # calls without a confidence are left out of the average
    assert metrics["engines"]["pricing"]["avg_confidence"] == 50.0
    assert metrics["chatbot_fallback_rate"] == 50.0
    assert metrics["recommendation_satisfaction_rate"] == 66.7
    assert metrics["feedback_summary"]["negative"] == 1
