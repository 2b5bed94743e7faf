from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest

from restaurant_ai.chat.intent import classify_intent, extract_entities
from restaurant_ai.chat.models import ChatMessage
from restaurant_ai.chat.service import APOLOGY, GENERAL_TEXT, HELP_TEXT, ChatbotService
from restaurant_ai.llm.config import LLMConfig
from restaurant_ai.storage.models import OrderStatus

OFFLINE_LLM = LLMConfig(api_key="", enabled=False)


@pytest.fixture
def chatbot(accessor, recommendation_engine, pricing_engine, clock):
    return ChatbotService(accessor, recommendation_engine, pricing_engine, llm_config=OFFLINE_LLM, clock=clock)


# ── Intent ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize("message, intent, confidence", [
    ("hello", "greeting", 0.5),
    ("help", "help", 1.0),
    ("Can you recommend a vegetarian dish?", "menu_recommendation", 1.0),
    ("How much is the Plain Burger?", "pricing_question", 0.5),
    ("What are your hours?", "restaurant_info", 0.5),
    ("Book a table for 4 tomorrow", "reservation", 1.0),
    ("show me sales report", "analytics_request", 0.5),
    ("Tell me a joke", "general", 0.0),
])
def test_classify_intent(message, intent, confidence):
    result = classify_intent(message)
    assert result.type == intent
    assert result.confidence == pytest.approx(confidence)


def test_extract_entities(accessor):
    menu = accessor.get_menu_items(1)
    entities = extract_entities("Is the vegan Garden Bowl gluten-free for 3 people tonight?", menu)
    assert entities.menu_item.id == 3
    # later dietary patterns win
    assert entities.dietary == "gluten-free"
    assert entities.number == 3
    assert entities.when == "today"


def test_extract_entities_empty(accessor):
    entities = extract_entities("hello there", accessor.get_menu_items(1))
    assert entities.menu_item is None
    assert entities.dietary is None
    assert entities.number is None


# ── Handlers ─────────────────────────────────────────────────────────────


def test_greeting_uses_names(chatbot):
    response = chatbot.process_message("hello", user_id=1, restaurant_id=1)
    assert response.message.startswith("Hello Alice! Welcome back to Test Bistro.")
    assert response.intent == "greeting"
    assert response.confidence == 0.5


def test_dietary_recommendation(chatbot):
    response = chatbot.process_message("Can you recommend a vegetarian dish?", user_id=1, restaurant_id=1)
    assert response.message.startswith("Here are some great vegetarian options for you:")
    assert "Garden Bowl" in response.message
    assert [a.payload["item_id"] for a in response.actions] == [3, 4]
    assert [item["id"] for item in response.data["recommendations"]] == [3, 4]


def test_personalized_recommendation(chatbot):
    response = chatbot.process_message("What should I eat?", user_id=1, restaurant_id=1)
    assert response.intent == "menu_recommendation"
    assert response.message.startswith("Based on your preferences, I recommend:")
    assert len(response.actions) == 3


def test_active_order_status(chatbot, place_order, clock):
    place_order(1, clock.now - timedelta(minutes=10), lines=[(1, 2, 20.0)], status=OrderStatus.preparing)
    response = chatbot.process_message("Where is my order?", user_id=1, restaurant_id=1)
    assert response.intent == "order_inquiry"
    assert "**Order #1**" in response.message
    assert "being prepared in our kitchen" in response.message
    assert "Items: 2x Plain Burger" in response.message
    assert "Total: $40.00" in response.message


def test_no_active_orders(chatbot, place_order, clock):
    place_order(1, clock.now - timedelta(days=2))
    response = chatbot.process_message("Where is my order?", user_id=1, restaurant_id=1)
    assert response.message.startswith("You don't have any active orders")
    assert response.actions[0].type == "place_order"


def test_restaurant_info(chatbot):
    response = chatbot.process_message("What are your hours?", user_id=1, restaurant_id=1)
    assert "**Test Bistro**" in response.message
    assert "**Address:** 1 Main Street" in response.message
    assert "Monday: 11:00-22:00" in response.message
    assert response.actions[1].payload == {"phone": "555-0001"}


def test_reservation_reads_party_and_day(chatbot):
    response = chatbot.process_message("Book a table for 4 tomorrow", user_id=1, restaurant_id=1)
    assert "a table for 4 tomorrow" in response.message
    assert response.actions[0].payload == {"party_size": 4, "when": "tomorrow", "restaurant_id": 1, "user_id": 1}


def test_price_of_named_item(chatbot):
    response = chatbot.process_message("How much is the Plain Burger?", user_id=1, restaurant_id=1)
    assert response.message == "**Plain Burger** is currently $20.00"
    assert response.data["pricing"]["dynamic_price"] == 20.0


def test_price_overview(chatbot):
    response = chatbot.process_message("How much do desserts cost?", user_id=1, restaurant_id=1)
    assert "**Appetizers:** $14.00 - $14.00" in response.message
    assert "**Mains:** $12.00 - $25.00" in response.message
    assert "**Desserts:** $8.00 - $8.00" in response.message


def test_analytics_denied_for_customers(chatbot):
    response = chatbot.process_message("show me sales report", user_id=1, restaurant_id=1)
    assert "only available to restaurant owners" in response.message
    assert response.data is None


def test_analytics_for_owner(chatbot, place_order, clock):
    place_order(4, clock.now - timedelta(hours=1), total_price=30.0)
    place_order(4, clock.now - timedelta(days=1), total_price=99.0)
    response = chatbot.process_message("show me sales report", user_id=2, restaurant_id=1)
    assert "Today's Performance" in response.message
    assert "Orders: 1" in response.message
    assert "Revenue: $30.00" in response.message


def test_analytics_denied_for_other_owner(chatbot):
    response = chatbot.process_message("show me sales report", user_id=2, restaurant_id=2)
    assert "only available to restaurant owners" in response.message


def test_complaint_opens_ticket(chatbot):
    response = chatbot.process_message("My food was terrible", user_id=1, restaurant_id=1)
    assert response.intent == "complaint_feedback"
    assert response.actions[0].type == "create_support_ticket"
    assert response.actions[0].payload["message"] == "My food was terrible"


def test_help(chatbot):
    assert chatbot.process_message("help", user_id=1, restaurant_id=1).message == HELP_TEXT


# ── General / LLM fallback ───────────────────────────────────────────────


def test_general_without_llm_uses_static_text(chatbot):
    response = chatbot.process_message("Tell me a joke", user_id=1, restaurant_id=1)
    assert response.message == GENERAL_TEXT
    assert response.intent == "general"
    assert response.confidence == 0.0


@patch("restaurant_ai.chat.service.answer_general_question", return_value="Dogs are welcome on the terrace.")
def test_general_uses_llm_reply(mock_answer, chatbot):
    response = chatbot.process_message("Tell me a joke", user_id=1, restaurant_id=1)
    assert response.message == "Dogs are welcome on the terrace."
    assert mock_answer.call_args.args[1] == "Test Bistro"


@patch("restaurant_ai.chat.service.answer_general_question", return_value=None)
def test_history_is_trimmed(mock_answer, chatbot):
    chatbot.max_history = 2
    history = [ChatMessage(role="user", content=f"m{i}") for i in range(5)]
    chatbot.process_message("Tell me a joke", user_id=1, restaurant_id=1, history=history)
    assert [turn["content"] for turn in mock_answer.call_args.args[2]] == ["m3", "m4"]

    chatbot.max_history = 0
    chatbot.process_message("Tell me a joke", user_id=1, restaurant_id=1, history=history)
    assert mock_answer.call_args.args[2] == []


def test_handler_failure_returns_apology(chatbot):
    with patch.object(chatbot, "handle_greeting", side_effect=RuntimeError("db down")):
        response = chatbot.process_message("hello", user_id=1, restaurant_id=1)
    assert response.intent == "error"
    assert response.confidence == 0.3
    assert response.message == APOLOGY.message
    assert response is not APOLOGY
