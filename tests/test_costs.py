"""
Tests for project pricing and photo freshness
"""
from datetime import timedelta

import pytest

from talentbook.costs import (
    ProjectCosts, calculate_project_costs, costs_from_prices, days_since, needs_photo_update,
    outstanding_balance,
)
from talentbook.models import ProjectTalent, Talent


def make_talent(talent_id, price, clock):
    return Talent(
        id=talent_id, name=talent_id.title(), category_id="c1", gender="female",
        price_per_project=price, created_at=clock.now(), last_photo_update=clock.now(),
    )


class TestProjectCosts:

    def test_single_talent_with_default_margin(self, clock):
        amal = make_talent("amal", 500, clock)
        costs = calculate_project_costs([amal], [ProjectTalent(talent_id="amal")], 15)
        assert costs == ProjectCosts(subtotal=500, profit=75, total=575)

    def test_custom_price_overrides_talent_price(self, clock):
        talents = [make_talent("amal", 500, clock), make_talent("sara", 300, clock)]
        line_items = [
            ProjectTalent(talent_id="amal", custom_price=400),
            ProjectTalent(talent_id="sara"),
        ]
        costs = calculate_project_costs(talents, line_items, 10)
        assert costs.subtotal == 700
        assert costs.profit == pytest.approx(70)
        assert costs.total == pytest.approx(770)

    def test_custom_price_of_zero_is_used(self, clock):
        costs = calculate_project_costs(
            [make_talent("amal", 500, clock)], [ProjectTalent(talent_id="amal", custom_price=0)], 15,
        )
        assert costs.subtotal == 0

    def test_dangling_talent_contributes_nothing(self, clock):
        costs = calculate_project_costs(
            [make_talent("amal", 500, clock)],
            [ProjectTalent(talent_id="amal"), ProjectTalent(talent_id="deleted", custom_price=999)],
            15,
        )
        assert costs.subtotal == 500

    @pytest.mark.parametrize("margin", [0, -10, 12.5])
    def test_total_is_subtotal_plus_profit(self, clock, margin):
        costs = calculate_project_costs([make_talent("amal", 480, clock)], [ProjectTalent(talent_id="amal")], margin)
        assert costs.total == costs.subtotal + costs.profit
        assert costs.profit == pytest.approx(480 * margin / 100)

    def test_empty_project(self):
        assert calculate_project_costs([], [], 15).as_dict() == {"subtotal": 0, "profit": 0, "total": 0}

    def test_costs_from_prices_accepts_wire_line_items(self):
        costs = costs_from_prices(
            {"amal": 500, "sara": 300},
            [{"talentId": "amal"}, {"talentId": "sara", "customPrice": 250}],
            20,
        )
        assert costs.subtotal == 750
        assert costs.total == pytest.approx(900)

    def test_outstanding_balance(self, store, clock):
        amal = make_talent("amal", 500, clock)
        project = store.projects.create(name="Campaign", talents=[{"talent_id": "amal"}])
        project = store.projects.add_payment(project.id, 200, "2026-03-02")
        assert outstanding_balance(project, [amal]) == pytest.approx(375)


class TestPhotoFreshness:

    def test_29_days_is_fresh(self, clock):
        talent = make_talent("amal", 500, clock)
        clock.advance(days=29)
        assert needs_photo_update(talent, clock=clock) is False

    def test_30_days_is_stale(self, clock):
        talent = make_talent("amal", 500, clock)
        clock.advance(days=30)
        assert needs_photo_update(talent, clock=clock) is True

    def test_partial_days_are_floored(self, clock):
        talent = make_talent("amal", 500, clock)
        now = clock.now() + timedelta(days=29, hours=23, minutes=59)
        assert needs_photo_update(talent, now=now) is False

    def test_days_since(self, clock):
        assert days_since(clock.now(), clock.now() + timedelta(days=3, hours=5)) == 3
        assert days_since(clock.now(), clock.now() - timedelta(hours=1)) == -1
