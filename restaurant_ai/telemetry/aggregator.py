from __future__ import annotations

from collections import Counter, defaultdict
from typing import Any


def _rate(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total else 0.0


def compute_performance_metrics(
    events: list[dict[str, Any]],
    feedback: list[dict[str, Any]],
) -> dict[str, Any]:
    """Summarise recorded engine calls and recommendation feedback."""
    calls = [e for e in events if e["type"] == "engine_call"]

    per_engine: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for call in calls:
        per_engine[call["engine"]].append(call)

    engines = {}
    for name, engine_calls in sorted(per_engine.items()):
        times = [c["response_time_ms"] for c in engine_calls if "response_time_ms" in c]
        confidences = [c["confidence"] for c in engine_calls if c.get("confidence") is not None]
        engines[name] = {
            "requests": len(engine_calls),
            "avg_response_time_ms": round(sum(times) / len(times), 1) if times else 0.0,
            "avg_confidence": round(sum(confidences) / len(confidences), 1) if confidences else 0.0,
            "top_operations": [
                {"name": op, "count": count}
                for op, count in Counter(c["operation"] for c in engine_calls).most_common(5)
            ],
        }

    chat_calls = per_engine.get("chatbot", [])
    fallbacks = sum(1 for c in chat_calls if c.get("fallback"))

    positive = sum(1 for f in feedback if f["is_positive"])
    return {
        "total_requests": len(calls),
        "engines": engines,
        "recommendation_satisfaction_rate": _rate(positive, len(feedback)),
        "chatbot_fallback_rate": _rate(fallbacks, len(chat_calls)),
        "feedback_summary": {
            "total": len(feedback),
            "positive": positive,
            "negative": len(feedback) - positive,
            "satisfaction_rate": _rate(positive, len(feedback)),
        },
    }
