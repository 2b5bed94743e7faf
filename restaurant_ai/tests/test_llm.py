from unittest.mock import MagicMock, patch

from restaurant_ai.llm.config import LLMConfig
from restaurant_ai.llm.groq_client import answer_general_question

ENABLED_CONFIG = LLMConfig(api_key="test-key", enabled=True)
DISABLED_CONFIG = LLMConfig(api_key="test-key", enabled=False)
NO_KEY_CONFIG = LLMConfig(api_key="", enabled=True)


def _mock_groq_response(content: str | None) -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


@patch("restaurant_ai.llm.groq_client.Groq")
def test_answer_returns_reply(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(
        "  We have a lovely terrace for outdoor dining.  "
    )

    reply = answer_general_question("Do you have outdoor seating?", "Test Bistro", config=ENABLED_CONFIG)

    assert reply == "We have a lovely terrace for outdoor dining."
    mock_groq_cls.assert_called_once_with(api_key="test-key", timeout=ENABLED_CONFIG.timeout)


@patch("restaurant_ai.llm.groq_client.Groq")
def test_answer_sends_restaurant_and_recent_history(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response("Sure!")
    history = [{"role": "user", "content": f"turn {i}"} for i in range(6)]
    history.append({"role": "system", "content": "ignored"})

    answer_general_question("And parking?", "Test Bistro", history, config=ENABLED_CONFIG)

    messages = mock_groq_cls.return_value.chat.completions.create.call_args.kwargs["messages"]
    assert messages[0]["role"] == "system"
    assert "Test Bistro" in messages[0]["content"]
    # last four turns only; the trailing system turn is dropped
    assert [m["content"] for m in messages[1:]] == ["turn 3", "turn 4", "turn 5", "And parking?"]


@patch("restaurant_ai.llm.groq_client.Groq")
def test_answer_fallback_on_api_error(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.side_effect = Exception("API timeout")

    assert answer_general_question("Anything?", "Test Bistro", config=ENABLED_CONFIG) is None


@patch("restaurant_ai.llm.groq_client.Groq")
def test_answer_fallback_on_empty_reply(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response("   ")

    assert answer_general_question("Anything?", "Test Bistro", config=ENABLED_CONFIG) is None


@patch("restaurant_ai.llm.groq_client.Groq")
def test_answer_disabled(mock_groq_cls):
    assert answer_general_question("Anything?", "Test Bistro", config=DISABLED_CONFIG) is None
    assert answer_general_question("Anything?", "Test Bistro", config=NO_KEY_CONFIG) is None
    mock_groq_cls.assert_not_called()
