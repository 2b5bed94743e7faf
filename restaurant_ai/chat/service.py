from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import answer_general_question
from ..pricing.engine import PricingEngine
from ..recommendations.engine import RecommendationEngine
from ..recommendations.models import RecommendationOptions
from ..storage.accessor import DataAccessor, fetch
from ..storage.models import ACTIVE_ORDER_STATUSES, OrderStatus, Role
from .intent import classify_intent, extract_entities
from .models import ChatAction, ChatbotResponse, ChatEntities, ChatMessage

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Static replies
# ---------------------------------------------------------------------------

APOLOGY = ChatbotResponse(
    message="I'm sorry, something went wrong while handling your request. Please try again in a moment.",
    suggestions=["Try again", "Browse menu", "Contact support"],
    confidence=0.3,
    intent="error",
)

HELP_TEXT = (
    "I'm here to help! Here's what I can do for you:\n\n"
    "**Menu & Food:**\n"
    "- Get personalized recommendations\n"
    "- Find dishes for dietary needs\n"
    "- Check prices and specials\n\n"
    "**Orders:**\n"
    "- Check order status\n"
    "- Track delivery\n"
    "- Order history\n\n"
    "**Reservations:**\n"
    "- Book a table\n"
    "- Check availability\n\n"
    "**Restaurant Info:**\n"
    "- Hours and location\n"
    "- Contact information\n\n"
    "Just ask me in natural language!"
)

GENERAL_TEXT = (
    "I'm not sure I understand what you're looking for. Could you try asking about:\n\n"
    "- Menu recommendations\n"
    "- Order status\n"
    "- Restaurant information\n"
    "- Making a reservation\n\n"
    "Or just say 'help' to see everything I can do!"
)

ORDER_STATUS_TEXT = {
    OrderStatus.pending: "Your order has been received and is being processed.",
    OrderStatus.confirmed: "Your order has been confirmed and will start being prepared shortly.",
    OrderStatus.preparing: "Your order is currently being prepared in our kitchen.",
    OrderStatus.ready: "Great news! Your order is ready for pickup.",
}

# Category ids shown in the price overview
PRICE_OVERVIEW_CATEGORIES = {"Appetizers": 1, "Mains": 2, "Desserts": 5}

RECOMMENDATION_LIMIT = 5
ITEMS_SHOWN = 3


class ChatbotService:
    """Routes a chat message to the matching handler and formats the reply.

    The handlers only format what the engines and the data accessor return;
    no scoring happens here.
    """

    def __init__(
        self,
        accessor: DataAccessor,
        recommendations: RecommendationEngine,
        pricing: PricingEngine,
        llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
        max_history: int = 50,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.accessor = accessor
        self.recommendations = recommendations
        self.pricing = pricing
        self.llm_config = llm_config
        self.max_history = max_history
        self.clock = clock

    def process_message(
        self,
        message: str,
        user_id: int,
        restaurant_id: int,
        history: list[ChatMessage] | None = None,
    ) -> ChatbotResponse:
        history = (history or [])[-self.max_history:] if self.max_history > 0 else []
        intent = classify_intent(message)

        try:
            entities = extract_entities(message, fetch(self.accessor.get_menu_items, restaurant_id))
            response = self._dispatch(intent.type, message, entities, user_id, restaurant_id, history)
        except Exception:
            logger.warning("Chat handler for intent %s failed", intent.type, exc_info=True)
            return APOLOGY.model_copy(deep=True)

        response.confidence = intent.confidence
        response.intent = intent.type
        return response

    def _dispatch(
        self,
        intent: str,
        message: str,
        entities: ChatEntities,
        user_id: int,
        restaurant_id: int,
        history: list[ChatMessage],
    ) -> ChatbotResponse:
        if intent == "menu_recommendation":
            return self.handle_menu_recommendation(user_id, restaurant_id, entities)
        if intent == "order_inquiry":
            return self.handle_order_inquiry(user_id)
        if intent == "restaurant_info":
            return self.handle_restaurant_info(restaurant_id)
        if intent == "reservation":
            return self.handle_reservation(user_id, restaurant_id, entities)
        if intent == "pricing_question":
            return self.handle_pricing_question(restaurant_id, entities)
        if intent == "analytics_request":
            return self.handle_analytics_request(user_id, restaurant_id)
        if intent == "complaint_feedback":
            return self.handle_complaint(user_id, restaurant_id, message)
        if intent == "greeting":
            return self.handle_greeting(user_id, restaurant_id)
        if intent == "help":
            return self.handle_help()
        return self.handle_general(message, restaurant_id, history)

    # ── Handlers ─────────────────────────────────────────────────────────

    def handle_menu_recommendation(
        self, user_id: int, restaurant_id: int, entities: ChatEntities
    ) -> ChatbotResponse:
        if entities.dietary:
            items = self.recommendations.get_dietary_recommendations(restaurant_id, entities.dietary)
        else:
            items = self.recommendations.get_personalized_recommendations(
                user_id, restaurant_id, RecommendationOptions(limit=RECOMMENDATION_LIMIT)
            ).recommendations

        if not items:
            return ChatbotResponse(
                message=(
                    "I'm sorry, I couldn't find any recommendations that match your preferences "
                    "right now. Would you like to see our popular items instead?"
                ),
                suggestions=["Show popular items", "Browse menu", "Help me choose"],
            )

        top = items[:ITEMS_SHOWN]
        listing = "\n\n".join(
            f"{i}. **{item.name}** - ${item.price:.2f}\n   {item.description or ''}".rstrip()
            for i, item in enumerate(top, start=1)
        )
        intro = (
            f"Here are some great {entities.dietary} options for you:"
            if entities.dietary
            else "Based on your preferences, I recommend:"
        )
        return ChatbotResponse(
            message=f"{intro}\n\n{listing}",
            suggestions=["Tell me more about #1", "Add to cart", "See more recommendations", "Browse full menu"],
            data={"recommendations": [item.model_dump() for item in top]},
            actions=[
                ChatAction(type="view_item", label=f"View {item.name}", payload={"item_id": item.id})
                for item in top
            ],
        )

    def handle_order_inquiry(self, user_id: int) -> ChatbotResponse:
        orders = fetch(self.accessor.get_user_orders, user_id)
        active = [o for o in orders if o.status in ACTIVE_ORDER_STATUSES]
        if not active:
            return ChatbotResponse(
                message="You don't have any active orders right now. Would you like to place a new order?",
                suggestions=["Place new order", "View menu", "Order history"],
                actions=[ChatAction(type="place_order", label="Start ordering")],
            )

        latest = active[0]
        lines = fetch(self.accessor.get_order_items, latest.id)
        names = []
        for line in lines:
            item = fetch(self.accessor.get_menu_item, line.menu_item_id)
            names.append(f"{line.quantity}x {item.name if item else line.menu_item_id}")

        return ChatbotResponse(
            message=(
                f"**Order #{latest.id}**\n{ORDER_STATUS_TEXT[latest.status]}\n\n"
                f"Items: {', '.join(names)}\nTotal: ${latest.total_price:.2f}"
            ),
            suggestions=["Track order", "Contact restaurant", "Order again"],
            data={
                "order": latest.model_dump(mode="json"),
                "items": [line.model_dump() for line in lines],
            },
        )

    def handle_restaurant_info(self, restaurant_id: int) -> ChatbotResponse:
        restaurant = fetch(self.accessor.get_restaurant, restaurant_id)
        if restaurant is None:
            return ChatbotResponse(
                message="I'm sorry, I couldn't find restaurant information right now.",
                suggestions=["Try again", "Contact support"],
            )

        parts = [f"**{restaurant.name}**\n"]
        if restaurant.description:
            parts.append(f"{restaurant.description}\n")
        parts.append(f"**Address:** {restaurant.address}")
        parts.append(f"**Phone:** {restaurant.phone}")
        if restaurant.opening_hours:
            parts.append("\n**Hours:**")
            parts.extend(f"{day.capitalize()}: {hours}" for day, hours in restaurant.opening_hours.items())

        return ChatbotResponse(
            message="\n".join(parts),
            suggestions=["View menu", "Make reservation", "Get directions"],
            data={"restaurant": restaurant.model_dump()},
            actions=[
                ChatAction(type="get_directions", label="Get Directions", payload={"address": restaurant.address}),
                ChatAction(type="call_restaurant", label="Call Restaurant", payload={"phone": restaurant.phone}),
            ],
        )

    def handle_reservation(self, user_id: int, restaurant_id: int, entities: ChatEntities) -> ChatbotResponse:
        party_size = entities.number or 2
        when = entities.when or "today"
        return ChatbotResponse(
            message=(
                "I'd be happy to help you make a reservation! It looks like you're interested "
                f"in a table for {party_size} {when}.\n\n"
                "To complete your reservation, I'll need a few more details:"
            ),
            suggestions=["Book for tonight", "Book for tomorrow", "Choose different time", f"Party size: {party_size}"],
            actions=[ChatAction(
                type="make_reservation",
                label="Make Reservation",
                payload={"party_size": party_size, "when": when,
                         "restaurant_id": restaurant_id, "user_id": user_id},
            )],
        )

    def handle_pricing_question(self, restaurant_id: int, entities: ChatEntities) -> ChatbotResponse:
        item = entities.menu_item
        if item is not None:
            quote = self.pricing.get_dynamic_price(item.id, restaurant_id)
            text = f"**{item.name}** is currently ${quote.dynamic_price:.2f}"
            if quote.original_price != quote.dynamic_price:
                text += f" (regular price: ${quote.original_price:.2f})"
            if quote.adjustments:
                text += "\n\nPrice factors: " + ", ".join(a.reasoning for a in quote.adjustments)
            return ChatbotResponse(
                message=text,
                suggestions=["Add to cart", "View details", "See similar items"],
                data={"item": item.model_dump(), "pricing": quote.model_dump(mode="json")},
                actions=[ChatAction(type="add_to_cart", label="Add to Cart", payload={"item_id": item.id})],
            )

        menu = fetch(self.accessor.get_menu_items, restaurant_id)
        lines = ["Here's an overview of our pricing:\n"]
        for label, category_id in PRICE_OVERVIEW_CATEGORIES.items():
            prices = [i.price for i in menu if i.category_id == category_id]
            if prices:
                lines.append(f"**{label}:** ${min(prices):.2f} - ${max(prices):.2f}")
        return ChatbotResponse(
            message="\n".join(lines),
            suggestions=["View menu", "See specials", "Budget options"],
        )

    def handle_analytics_request(self, user_id: int, restaurant_id: int) -> ChatbotResponse:
        user = fetch(self.accessor.get_user, user_id)
        allowed = user is not None and (
            user.role == Role.admin
            or (user.role == Role.owner and user.restaurant_id == restaurant_id)
        )
        if not allowed:
            return ChatbotResponse(
                message="I'm sorry, analytics information is only available to restaurant owners and managers.",
                suggestions=["View menu", "Make reservation", "Contact support"],
            )

        today_start = self.clock().replace(hour=0, minute=0, second=0, microsecond=0)
        today = [o for o in fetch(self.accessor.get_restaurant_orders, restaurant_id) if o.created_at >= today_start]
        revenue = sum(o.total_price for o in today)
        average = revenue / len(today) if today else 0.0
        return ChatbotResponse(
            message=(
                "**Today's Performance:**\n\n"
                f"Orders: {len(today)}\nRevenue: ${revenue:.2f}\nAvg Order: ${average:.2f}"
            ),
            suggestions=["Detailed analytics", "Revenue trends", "Customer insights"],
            data={"orders": len(today), "revenue": round(revenue, 2)},
            actions=[ChatAction(type="view_analytics", label="View Full Dashboard",
                                payload={"restaurant_id": restaurant_id})],
        )

    def handle_complaint(self, user_id: int, restaurant_id: int, message: str) -> ChatbotResponse:
        logger.info("Complaint from user %s for restaurant %s", user_id, restaurant_id)
        return ChatbotResponse(
            message=(
                "I'm sorry to hear about your experience. Your feedback is very important to us. "
                "I've recorded your concern and a manager will follow up with you shortly.\n\n"
                "Is there anything I can help you with right now to improve your experience?"
            ),
            suggestions=["Speak to manager", "Request refund", "Leave detailed review"],
            actions=[ChatAction(
                type="create_support_ticket",
                label="Create Support Ticket",
                payload={"user_id": user_id, "restaurant_id": restaurant_id, "message": message},
            )],
        )

    def handle_greeting(self, user_id: int, restaurant_id: int) -> ChatbotResponse:
        user = fetch(self.accessor.get_user, user_id)
        restaurant = fetch(self.accessor.get_restaurant, restaurant_id)
        venue = restaurant.name if restaurant else "our restaurant"
        greeting = f"Hello {user.name}! Welcome back to {venue}." if user else f"Hello! Welcome to {venue}."
        return ChatbotResponse(
            message=(
                f"{greeting} I'm your AI assistant and I'm here to help you with menu recommendations, "
                "orders, reservations, and any questions you might have. What can I do for you today?"
            ),
            suggestions=["Recommend something delicious", "Check my order", "Make a reservation", "Restaurant info"],
        )

    def handle_help(self) -> ChatbotResponse:
        return ChatbotResponse(
            message=HELP_TEXT,
            suggestions=["Recommend food", "Check my order", "Make reservation", "Restaurant hours"],
        )

    def handle_general(self, message: str, restaurant_id: int, history: list[ChatMessage]) -> ChatbotResponse:
        restaurant = fetch(self.accessor.get_restaurant, restaurant_id)
        reply = answer_general_question(
            message,
            restaurant.name if restaurant else "our restaurant",
            [{"role": m.role, "content": m.content} for m in history],
            self.llm_config,
        )
        return ChatbotResponse(
            message=reply or GENERAL_TEXT,
            suggestions=["Help", "Recommend food", "Restaurant info", "Make reservation"],
        )
