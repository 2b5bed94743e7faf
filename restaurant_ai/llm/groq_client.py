from __future__ import annotations

import logging

from groq import Groq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are the friendly assistant of a restaurant called {restaurant}. "
    "Answer the guest's question in at most three short sentences. "
    "If the question is not about food, dining, orders, reservations or the "
    "restaurant, politely steer the guest back to those topics. "
    "Never invent prices, opening hours or order details."
)

# Earlier turns sent along with the question
_CONTEXT_TURNS = 4


def answer_general_question(
    message: str,
    restaurant_name: str,
    history: list[dict[str, str]] | None = None,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> str | None:
    """
    Ask the Groq LLM for a short reply to a message no intent matched.

    Returns ``None`` when the LLM is disabled, unconfigured or fails for any
    reason (timeout, API error, empty reply); callers use their static text.
    """
    if not config.enabled or not config.api_key:
        return None

    messages = [{"role": "system", "content": SYSTEM_PROMPT.format(restaurant=restaurant_name)}]
    for turn in (history or [])[-_CONTEXT_TURNS:]:
        if turn.get("role") in ("user", "assistant") and turn.get("content"):
            messages.append({"role": turn["role"], "content": turn["content"]})
    messages.append({"role": "user", "content": message})

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=messages,
            max_tokens=config.max_tokens,
            temperature=0.4,
        )
        reply = (response.choices[0].message.content or "").strip()
        return reply or None

    except Exception:
        logger.warning("Groq LLM call failed, falling back to static reply", exc_info=True)
        return None
