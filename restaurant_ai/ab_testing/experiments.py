"""
Pricing A/B Testing
===================

Owners can trial alternative prices for one menu item. Each test has a
**control** variant (the current menu price) and one variant per test price
(``price_1``, ``price_2``, ...).

How variant assignment works
----------------------------
A subject (usually a user id) is assigned a variant uniformly at random the
first time it is seen, and keeps that variant for the life of the test so
measurement stays clean. Pass a seeded ``random.Random`` for repeatable
assignment.

How a winner is picked
----------------------
Every time a variant's price is shown we record an **exposure**; every order
placed at that price is a **conversion**. Per variant:

    conversion_rate = conversions / exposures × 100

The best variant wins when its conversion rate beats the runner-up by
**>= 5 percentage points** and every variant has at least one exposure.
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from pydantic import BaseModel

from ..errors import NotFoundError

CONTROL = "control"
WINNER_MARGIN = 5.0


class VariantStats(BaseModel):
    variant: str
    price: float
    exposures: int
    conversions: int
    conversion_rate: float


class PricingTest(BaseModel):
    test_id: str
    menu_item_id: int
    original_price: float
    test_prices: list[float]
    start_date: datetime
    end_date: datetime
    status: str


class PricingTestResults(BaseModel):
    test: PricingTest
    variants: list[VariantStats]
    winner: str | None


@dataclass
class _Experiment:
    test_id: str
    menu_item_id: int
    original_price: float
    test_prices: list[float]
    start_date: datetime
    end_date: datetime
    assignments: dict[str, str] = field(default_factory=dict)
    exposures: dict[str, int] = field(default_factory=dict)
    conversions: dict[str, int] = field(default_factory=dict)

    @property
    def prices(self) -> dict[str, float]:
        variants = {CONTROL: self.original_price}
        for index, price in enumerate(self.test_prices, start=1):
            variants[f"price_{index}"] = price
        return variants


class PricingExperimentRegistry:
    """In-process store of pricing experiments and their counters."""

    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._rng = rng or random.Random()
        self._clock = clock
        self._lock = threading.Lock()
        self._experiments: dict[str, _Experiment] = {}

    def create(
        self,
        menu_item_id: int,
        original_price: float,
        test_prices: list[float],
        duration_days: int = 7,
    ) -> PricingTest:
        start = self._clock()
        with self._lock:
            test_id = f"pricing_test_{menu_item_id}_{int(start.timestamp() * 1000)}"
            # Two tests created in the same millisecond
            suffix = 1
            while test_id in self._experiments:
                suffix += 1
                test_id = f"pricing_test_{menu_item_id}_{int(start.timestamp() * 1000)}_{suffix}"
            experiment = _Experiment(
                test_id=test_id,
                menu_item_id=menu_item_id,
                original_price=original_price,
                test_prices=list(test_prices),
                start_date=start,
                end_date=start + timedelta(days=duration_days),
            )
            self._experiments[test_id] = experiment
        return self._describe(experiment)

    def get(self, test_id: str) -> PricingTest:
        return self._describe(self._require(test_id))

    def list(self, menu_item_id: int | None = None) -> list[PricingTest]:
        with self._lock:
            experiments = list(self._experiments.values())
        return [
            self._describe(e) for e in experiments
            if menu_item_id is None or e.menu_item_id == menu_item_id
        ]

    def assign_variant(self, test_id: str, subject: str | int) -> tuple[str, float]:
        """Return the sticky ``(variant, price)`` for *subject*."""
        experiment = self._require(test_id)
        key = str(subject)
        with self._lock:
            variant = experiment.assignments.get(key)
            if variant is None:
                variant = self._rng.choice(list(experiment.prices))
                experiment.assignments[key] = variant
        return variant, experiment.prices[variant]

    def record_exposure(self, test_id: str, variant: str) -> None:
        self._bump(test_id, variant, "exposures")

    def record_conversion(self, test_id: str, variant: str) -> None:
        self._bump(test_id, variant, "conversions")

    def results(self, test_id: str) -> PricingTestResults:
        experiment = self._require(test_id)
        with self._lock:
            stats = []
            for variant, price in experiment.prices.items():
                exposures = experiment.exposures.get(variant, 0)
                conversions = experiment.conversions.get(variant, 0)
                rate = round(conversions / exposures * 100, 1) if exposures > 0 else 0.0
                stats.append(VariantStats(
                    variant=variant,
                    price=price,
                    exposures=exposures,
                    conversions=conversions,
                    conversion_rate=rate,
                ))

        winner = None
        if all(s.exposures > 0 for s in stats) and len(stats) > 1:
            ranked = sorted(stats, key=lambda s: s.conversion_rate, reverse=True)
            if ranked[0].conversion_rate - ranked[1].conversion_rate >= WINNER_MARGIN:
                winner = ranked[0].variant

        return PricingTestResults(test=self._describe(experiment), variants=stats, winner=winner)

    def clear(self) -> None:
        with self._lock:
            self._experiments.clear()

    # ── Internals ────────────────────────────────────────────────────────

    def _require(self, test_id: str) -> _Experiment:
        experiment = self._experiments.get(test_id)
        if experiment is None:
            raise NotFoundError("Pricing test", test_id)
        return experiment

    def _bump(self, test_id: str, variant: str, counter: str) -> None:
        experiment = self._require(test_id)
        if variant not in experiment.prices:
            raise ValueError(f"Unknown variant {variant!r} for {test_id}")
        with self._lock:
            counts = getattr(experiment, counter)
            counts[variant] = counts.get(variant, 0) + 1

    def _describe(self, experiment: _Experiment) -> PricingTest:
        return PricingTest(
            test_id=experiment.test_id,
            menu_item_id=experiment.menu_item_id,
            original_price=experiment.original_price,
            test_prices=list(experiment.test_prices),
            start_date=experiment.start_date,
            end_date=experiment.end_date,
            status="active" if self._clock() < experiment.end_date else "completed",
        )
