from __future__ import annotations

import re

from ..storage.models import MenuItem
from .models import ChatEntities, IntentResult

# ---------------------------------------------------------------------------
# Intent patterns
# ---------------------------------------------------------------------------
# A message scores matched_patterns / total_patterns per intent. Dict order is
# the tie-break: the first intent to reach the best score wins.

INTENT_PATTERNS: dict[str, list[re.Pattern[str]]] = {
    "menu_recommendation": [
        re.compile(r"recommend|suggest|what should i|good|popular|best"),
        re.compile(r"menu|food|dish|meal|eat"),
        re.compile(r"vegetarian|vegan|gluten.free|dairy.free"),
    ],
    "order_inquiry": [
        re.compile(r"order|my order|order status|where.*order|when.*ready"),
        re.compile(r"track|status|ready|pick.*up|delivery"),
    ],
    "restaurant_info": [
        re.compile(r"hours|open|close|location|address|phone|contact"),
        re.compile(r"restaurant|about|info|details"),
    ],
    "reservation": [
        re.compile(r"book|reserve|table|seat|party"),
        re.compile(r"tonight|tomorrow|weekend|date"),
    ],
    "pricing_question": [
        re.compile(r"price|cost|how much|expensive|cheap|deal|special"),
        re.compile(r"\$|dollar|money|pay"),
    ],
    "analytics_request": [
        re.compile(r"sales|revenue|popular|trending|analytics|stats|report"),
        re.compile(r"how.*doing|business|performance"),
    ],
    "complaint_feedback": [
        re.compile(r"complaint|complain|problem|issue|wrong|bad|terrible|disappointed"),
        re.compile(r"feedback|review|experience"),
    ],
    "greeting": [
        re.compile(r"^(hi|hello|hey|good morning|good afternoon|good evening)"),
        re.compile(r"how are you|what.*up"),
    ],
    "help": [
        re.compile(r"help|assist|support|what can you|commands|options"),
    ],
}

GENERAL_INTENT = "general"

# Later matches override earlier ones, so "vegan" beats "veggie".
_DIETARY_PATTERNS = [
    (re.compile(r"vegetarian|veggie", re.IGNORECASE), "vegetarian"),
    (re.compile(r"vegan", re.IGNORECASE), "vegan"),
    (re.compile(r"gluten.free", re.IGNORECASE), "gluten-free"),
    (re.compile(r"keto", re.IGNORECASE), "keto"),
]
_WHEN_PATTERNS = [
    (re.compile(r"tonight|today", re.IGNORECASE), "today"),
    (re.compile(r"tomorrow", re.IGNORECASE), "tomorrow"),
    (re.compile(r"weekend", re.IGNORECASE), "weekend"),
]
_NUMBER_RE = re.compile(r"\d+")


def normalize(message: str) -> str:
    return message.lower().strip()


def classify_intent(message: str) -> IntentResult:
    """Vote each intent by the share of its patterns the message matches."""
    text = normalize(message)
    best = IntentResult(type=GENERAL_INTENT, confidence=0.0)
    for intent, patterns in INTENT_PATTERNS.items():
        matched = sum(1 for p in patterns if p.search(text))
        confidence = matched / len(patterns)
        if confidence > best.confidence:
            best = IntentResult(type=intent, confidence=confidence)
    return best


def extract_entities(message: str, menu_items: list[MenuItem]) -> ChatEntities:
    text = normalize(message)
    entities = ChatEntities()

    for item in menu_items:
        if item.name.lower() in text:
            entities.menu_item = item
            break

    for pattern, label in _DIETARY_PATTERNS:
        if pattern.search(text):
            entities.dietary = label
    for pattern, label in _WHEN_PATTERNS:
        if pattern.search(text):
            entities.when = label

    number = _NUMBER_RE.search(text)
    if number:
        entities.number = int(number.group())

    return entities
