"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Answer open-ended chat messages that no intent handler covers.
- Graceful fallback when the LLM is unavailable or returns nothing usable.
"""
