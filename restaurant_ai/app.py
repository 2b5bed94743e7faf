from __future__ import annotations

import logging
import time
from datetime import date, datetime
from typing import Any, Callable, TypeVar

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.middleware.sessions import SessionMiddleware

from .ab_testing.experiments import PricingTest, PricingTestResults
from .analytics.engine import AnalyticsEngine
from .analytics.models import (
    ChurnPrediction,
    CustomerSegment,
    PredictionResult,
    PricingOptimization,
    StaffingRecommendation,
    StaffingRequest,
)
from .auth.dependencies import (
    check_restaurant_access,
    check_self_access,
    require_admin,
    require_staff,
    require_user,
)
from .auth.users import authenticate
from .chat.models import ChatbotResponse, ChatRequest
from .chat.service import ChatbotService
from .config import DEFAULT_SETTINGS
from .errors import NotFoundError, UpstreamUnavailableError
from .orchestration.config import AIConfiguration
from .orchestration.service import OrchestrationService
from .pricing.engine import PricingEngine
from .pricing.models import DynamicPrice, PriceRecommendation, PricingOptions, PricingTestRequest
from .providers import build_providers
from .recommendations.engine import RecommendationEngine
from .recommendations.models import (
    DietaryType,
    FeedbackRequest,
    FeedbackResponse,
    RecommendationOptions,
    RecommendationResult,
    TrendingTimeframe,
)
from .storage import build_demo_accessor, fetch, load_accessor
from .storage.models import MenuItem
from .telemetry.feedback import FeedbackStore
from .telemetry.store import EventStore

logging.basicConfig(
    level=getattr(logging, DEFAULT_SETTINGS.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoginRequest(BaseModel):
    username: str
    password: str


# ── Wiring ───────────────────────────────────────────────────────────────

settings = DEFAULT_SETTINGS
accessor = load_accessor(settings.data_dir) if settings.data_dir else build_demo_accessor()
providers = build_providers(settings)

events = EventStore()
feedback_store = FeedbackStore()

recommendation_engine = RecommendationEngine(accessor, weather_provider=providers.weather)
pricing_engine = PricingEngine(accessor, providers=providers)
analytics_engine = AnalyticsEngine(accessor, providers=providers)
chatbot = ChatbotService(accessor, recommendation_engine, pricing_engine)
orchestrator = OrchestrationService(
    accessor,
    recommendation_engine,
    pricing_engine,
    analytics_engine,
    events,
    feedback_store,
    chatbot=chatbot,
    cache_ttl=settings.insights_cache_ttl,
)

app = FastAPI(title="Restaurant AI API", version="2.0.0")
app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)


@app.exception_handler(NotFoundError)
def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": exc.message, **exc.details})


@app.exception_handler(UpstreamUnavailableError)
def upstream_handler(request: Request, exc: UpstreamUnavailableError) -> JSONResponse:
    logger.error("Upstream unavailable: %s", exc.operation)
    return JSONResponse(status_code=503, content={"detail": exc.message})


def _timed(
    engine: str,
    operation: str,
    call: Callable[[], T],
    confidence: Callable[[T], float | None] | None = None,
    fallback: Callable[[T], bool] | None = None,
) -> T:
    """Run one engine call and record its latency in the telemetry store."""
    started = time.time()
    result = call()
    events.record_engine_call(
        engine,
        operation,
        started,
        confidence=confidence(result) if confidence else None,
        fallback=fallback(result) if fallback else False,
    )
    return result


def _menu_item(menu_item_id: int) -> MenuItem:
    item = fetch(accessor.get_menu_item, menu_item_id)
    if item is None:
        raise NotFoundError("Menu item", menu_item_id)
    return item


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Recommendations ──────────────────────────────────────────────────────


@app.get("/recommendations/menu/{user_id}", response_model=RecommendationResult)
def menu_recommendations(
    user_id: int,
    restaurant_id: int,
    limit: int | None = None,
    include_weather_context: bool = True,
    include_price_optimization: bool = True,
    include_timing_context: bool = True,
    user: dict = Depends(require_user),
) -> RecommendationResult:
    check_self_access(user, user_id)
    options = RecommendationOptions(
        limit=limit,
        include_weather_context=include_weather_context,
        include_price_optimization=include_price_optimization,
        include_timing_context=include_timing_context,
    )
    return _timed(
        "recommendations", "personalized",
        lambda: recommendation_engine.get_personalized_recommendations(user_id, restaurant_id, options),
        confidence=lambda r: r.confidence,
    )


@app.get("/recommendations/trending/{restaurant_id}", response_model=list[MenuItem])
def trending_items(
    restaurant_id: int,
    timeframe: TrendingTimeframe = "7d",
    user: dict = Depends(require_user),
) -> list[MenuItem]:
    return _timed(
        "recommendations", "trending",
        lambda: recommendation_engine.get_trending_items(restaurant_id, timeframe),
    )


@app.get("/recommendations/dietary/{restaurant_id}/{dietary_type}", response_model=list[MenuItem])
def dietary_items(
    restaurant_id: int,
    dietary_type: DietaryType,
    user: dict = Depends(require_user),
) -> list[MenuItem]:
    return _timed(
        "recommendations", "dietary",
        lambda: recommendation_engine.get_dietary_recommendations(restaurant_id, dietary_type),
    )


@app.post("/feedback", response_model=FeedbackResponse)
def feedback(body: FeedbackRequest, user: dict = Depends(require_user)) -> FeedbackResponse:
    _menu_item(body.menu_item_id)
    total = feedback_store.record_feedback(user["user_id"], body.menu_item_id, body.is_positive)
    events.record_event("feedback", {"menu_item_id": body.menu_item_id, "is_positive": body.is_positive})
    return FeedbackResponse(status="recorded", total_feedback=total)


# ── Pricing ──────────────────────────────────────────────────────────────


@app.get("/pricing/dynamic/{menu_item_id}", response_model=DynamicPrice)
def dynamic_price(
    menu_item_id: int,
    restaurant_id: int,
    include_weather_adjustment: bool = True,
    include_inventory_adjustment: bool = True,
    include_seasonal_adjustment: bool = True,
    user: dict = Depends(require_user),
) -> DynamicPrice:
    options = PricingOptions(
        include_weather_adjustment=include_weather_adjustment,
        include_inventory_adjustment=include_inventory_adjustment,
        include_seasonal_adjustment=include_seasonal_adjustment,
    )
    return _timed(
        "pricing", "dynamic_price",
        lambda: pricing_engine.get_dynamic_price(menu_item_id, restaurant_id, options),
        confidence=lambda r: r.confidence,
    )


@app.get("/pricing/optimization/{restaurant_id}", response_model=list[PriceRecommendation])
def pricing_optimization(restaurant_id: int, user: dict = Depends(require_staff)) -> list[PriceRecommendation]:
    check_restaurant_access(user, restaurant_id)
    return _timed(
        "pricing", "optimization",
        lambda: pricing_engine.get_price_optimization_recommendations(restaurant_id),
    )


@app.post("/pricing/ab-test", response_model=PricingTest)
def create_pricing_test(body: PricingTestRequest, user: dict = Depends(require_staff)) -> PricingTest:
    check_restaurant_access(user, _menu_item(body.menu_item_id).restaurant_id)
    return _timed(
        "pricing", "ab_test",
        lambda: pricing_engine.create_pricing_ab_test(body.menu_item_id, body.test_prices, body.duration_days),
    )


@app.get("/pricing/ab-test/{test_id}", response_model=PricingTestResults)
def pricing_test_results(test_id: str, user: dict = Depends(require_staff)) -> PricingTestResults:
    results = _timed("pricing", "ab_test_results", lambda: pricing_engine.experiments.results(test_id))
    check_restaurant_access(user, _menu_item(results.test.menu_item_id).restaurant_id)
    return results


# ── Analytics ────────────────────────────────────────────────────────────


@app.get("/analytics/predict-demand/{restaurant_id}", response_model=PredictionResult)
def predict_demand(
    restaurant_id: int,
    timeframe: str = "1d",
    target_date: datetime | None = None,
    user: dict = Depends(require_staff),
) -> PredictionResult:
    check_restaurant_access(user, restaurant_id)
    return _timed(
        "analytics", "predict_demand",
        lambda: analytics_engine.predict_demand(restaurant_id, timeframe, target_date),
        confidence=lambda r: r.confidence,
    )


@app.get("/analytics/predict-revenue/{restaurant_id}", response_model=PredictionResult)
def predict_revenue(
    restaurant_id: int,
    timeframe: str = "7d",
    target_date: datetime | None = None,
    user: dict = Depends(require_staff),
) -> PredictionResult:
    check_restaurant_access(user, restaurant_id)
    return _timed(
        "analytics", "predict_revenue",
        lambda: analytics_engine.predict_revenue(restaurant_id, timeframe, target_date),
        confidence=lambda r: r.confidence,
    )


@app.post("/analytics/predict-staffing/{restaurant_id}", response_model=list[StaffingRecommendation])
def predict_staffing(
    restaurant_id: int,
    body: StaffingRequest,
    user: dict = Depends(require_staff),
) -> list[StaffingRecommendation]:
    check_restaurant_access(user, restaurant_id)
    target: date = body.target_date or date.today()
    return _timed(
        "analytics", "predict_staffing",
        lambda: analytics_engine.predict_staffing_needs(restaurant_id, target, body.shifts),
    )


@app.get("/analytics/customer-segments/{restaurant_id}", response_model=list[CustomerSegment])
def customer_segments(restaurant_id: int, user: dict = Depends(require_staff)) -> list[CustomerSegment]:
    check_restaurant_access(user, restaurant_id)
    return _timed(
        "analytics", "customer_segments",
        lambda: analytics_engine.analyze_customer_segments(restaurant_id),
    )


@app.get("/analytics/churn-prediction/{restaurant_id}", response_model=list[ChurnPrediction])
def churn_prediction(restaurant_id: int, user: dict = Depends(require_staff)) -> list[ChurnPrediction]:
    check_restaurant_access(user, restaurant_id)
    return _timed(
        "analytics", "churn_prediction",
        lambda: analytics_engine.predict_customer_churn(restaurant_id),
    )


@app.get("/analytics/pricing-optimization/{restaurant_id}", response_model=list[PricingOptimization])
def menu_pricing_optimization(
    restaurant_id: int, user: dict = Depends(require_staff)
) -> list[PricingOptimization]:
    check_restaurant_access(user, restaurant_id)
    return _timed(
        "analytics", "pricing_optimization",
        lambda: analytics_engine.optimize_menu_pricing(restaurant_id),
    )


# ── Chat endpoint ────────────────────────────────────────────────────────


@app.post("/chat", response_model=ChatbotResponse)
def chat(body: ChatRequest, user: dict = Depends(require_user)) -> ChatbotResponse:
    if not orchestrator.get_configuration().chatbot.enabled:
        raise HTTPException(status_code=503, detail="Chatbot is disabled")
    return _timed(
        "chatbot", "process_message",
        lambda: chatbot.process_message(body.message, user["user_id"], body.restaurant_id, body.history),
        confidence=lambda r: round(r.confidence * 100, 1),
        fallback=lambda r: r.intent in ("general", "error"),
    )


# ── Orchestration ────────────────────────────────────────────────────────


@app.get("/insights/comprehensive/{restaurant_id}")
def comprehensive_insights(restaurant_id: int, user: dict = Depends(require_staff)) -> dict:
    check_restaurant_access(user, restaurant_id)
    return _timed(
        "orchestration", "comprehensive_insights",
        lambda: orchestrator.get_comprehensive_insights(restaurant_id),
    )


@app.post("/optimize/{restaurant_id}")
def optimize(restaurant_id: int, user: dict = Depends(require_staff)) -> dict:
    check_restaurant_access(user, restaurant_id)
    return _timed(
        "orchestration", "optimization_tasks",
        lambda: orchestrator.run_optimization_tasks(restaurant_id),
    )


@app.get("/config", response_model=AIConfiguration)
def get_config(user: dict = Depends(require_staff)) -> AIConfiguration:
    return orchestrator.get_configuration()


@app.put("/config", response_model=AIConfiguration)
def update_config(
    updates: dict[str, Any] = Body(...),
    user: dict = Depends(require_admin),
) -> AIConfiguration:
    try:
        return orchestrator.update_configuration(updates)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@app.get("/system/health")
def system_health(user: dict = Depends(require_admin)) -> dict:
    return orchestrator.get_system_health()


@app.get("/export/{restaurant_id}")
def export(restaurant_id: int, user: dict = Depends(require_staff)) -> dict:
    check_restaurant_access(user, restaurant_id)
    return _timed("orchestration", "export", lambda: orchestrator.export_data(restaurant_id))


@app.get("/telemetry")
def telemetry(user: dict = Depends(require_admin)) -> dict:
    return orchestrator.get_performance_metrics()
