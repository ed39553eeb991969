"""Tests for the read-side views: feed, pending deliveries, history, filter, analysis."""

from datetime import date

import pytest

from food_hero_api.app.core.errors import ForbiddenError, ValidationError
from food_hero_api.app.schemas.waste import WasteFilter


def ids(entries):
    return [entry.id for entry in entries]


class TestPublicFeed:
    def test_newest_first_and_excludes_delivered(self, services, make_school, make_farmer, post_entry) -> None:
        school = make_school()
        farmer = make_farmer()
        first = post_entry(school, menu="Rice")
        second = post_entry(school, menu="Noodles")
        third = post_entry(school, menu="Soup")
        services.lifecycle.receive(farmer, second.id)
        services.lifecycle.receive(farmer, third.id)
        services.lifecycle.confirm_delivery(school, third.id)

        feed = services.queries.public_feed()

        assert ids(feed) == [second.id, first.id]
        assert all(not entry.is_delivered for entry in feed)

    def test_includes_owner_details(self, services, make_school, post_entry) -> None:
        post_entry(make_school("Kathu School"))
        (entry,) = services.queries.public_feed()
        assert entry.school.institute_name == "Kathu School"
        assert entry.school.email.endswith("@example.com")


class TestPendingDeliveries:
    def test_only_own_received_undelivered(self, services, make_school, make_farmer, post_entry) -> None:
        school = make_school()
        other = make_school("Other School")
        farmer = make_farmer()
        posted = post_entry(school)
        a = post_entry(school)
        b = post_entry(school)
        delivered = post_entry(school)
        foreign = post_entry(other)
        for entry in (a, b, delivered, foreign):
            services.lifecycle.receive(farmer, entry.id)
        services.lifecycle.confirm_delivery(school, delivered.id)

        pending = services.queries.pending_deliveries(school)

        assert ids(pending) == [b.id, a.id]
        assert posted.id not in ids(pending)

    def test_farmers_have_no_pending_view(self, services, make_farmer) -> None:
        with pytest.raises(ForbiddenError):
            services.queries.pending_deliveries(make_farmer())


class TestReceivedHistory:
    def test_includes_delivered_entries(self, services, make_school, make_farmer, post_entry) -> None:
        school = make_school()
        farmer = make_farmer("A")
        someone_else = make_farmer("B")
        a = post_entry(school)
        b = post_entry(school)
        c = post_entry(school)
        services.lifecycle.receive(farmer, a.id)
        services.lifecycle.receive(farmer, b.id)
        services.lifecycle.receive(someone_else, c.id)
        services.lifecycle.confirm_delivery(school, a.id)

        history = services.queries.received_history(farmer)

        assert ids(history) == [b.id, a.id]
        assert history[1].is_delivered

    def test_schools_have_no_history_view(self, services, make_school) -> None:
        with pytest.raises(ForbiddenError):
            services.queries.received_history(make_school())


class TestFilter:
    def test_weight_range_and_menu(self, services, make_school, make_farmer, post_entry) -> None:
        school = make_school()
        match_low = post_entry(school, menu="Fried RICE", weight=2)
        match_high = post_entry(school, menu="rice soup", weight=10)
        post_entry(school, menu="Rice", weight=1.5)
        post_entry(school, menu="Rice", weight=10.5)
        post_entry(school, menu="Noodles", weight=5)
        delivered = post_entry(school, menu="Rice", weight=5)
        services.lifecycle.receive(make_farmer(), delivered.id)
        services.lifecycle.confirm_delivery(school, delivered.id)

        result = services.queries.filter_feed(WasteFilter(weight_min=2, weight_max=10, menu="rice"))

        assert ids(result) == [match_high.id, match_low.id]

    def test_single_bound(self, services, make_school, post_entry) -> None:
        school = make_school()
        light = post_entry(school, weight=1)
        heavy = post_entry(school, weight=8)
        assert ids(services.queries.filter_feed(WasteFilter(weight_min=5))) == [heavy.id]
        assert ids(services.queries.filter_feed(WasteFilter(weight_max=5))) == [light.id]

    def test_exact_date(self, services, make_school, post_entry) -> None:
        school = make_school()
        post_entry(school, on=date(2025, 6, 1))
        target = post_entry(school, on=date(2025, 6, 2))
        post_entry(school, on=date(2025, 6, 3))
        result = services.queries.filter_feed(WasteFilter(date=date(2025, 6, 2)))
        assert ids(result) == [target.id]

    def test_school_name_substring(self, services, make_school, post_entry) -> None:
        kathu = post_entry(make_school("Kathu Wittaya School"))
        post_entry(make_school("Patong Municipal School"))
        result = services.queries.filter_feed(WasteFilter(school_name="kathu"))
        assert ids(result) == [kathu.id]

    def test_no_criteria_is_the_feed(self, services, make_school, post_entry) -> None:
        school = make_school()
        post_entry(school)
        post_entry(school)
        assert ids(services.queries.filter_feed(WasteFilter())) == ids(services.queries.public_feed())

    def test_inverted_range_rejected(self, services) -> None:
        with pytest.raises(ValidationError):
            services.queries.filter_feed(WasteFilter(weight_min=10, weight_max=2))


class TestAnalysis:
    def test_totals_per_menu(self, services, make_school, post_entry) -> None:
        school = make_school()
        post_entry(school, menu="menuA", weight=3, on=date(2025, 6, 2))
        post_entry(school, menu="menuA", weight=2, on=date(2025, 6, 3))
        post_entry(school, menu="menuB", weight=4, on=date(2025, 6, 4))
        post_entry(make_school("Other School"), menu="menuA", weight=100)

        result = services.queries.analyze(school)

        totals = {item.menu: item.total_weight for item in result.analysis}
        assert totals == {"menuA": 5, "menuB": 4}
        assert len(result.raw_data) == 3

    def test_uses_seven_earliest_dates(self, services, make_school, post_entry) -> None:
        school = make_school()
        for day in range(10, 0, -1):
            post_entry(school, menu=f"day{day}", weight=1, on=date(2025, 6, day))

        result = services.queries.analyze(school)

        assert [entry.date.day for entry in result.raw_data] == [1, 2, 3, 4, 5, 6, 7]
        assert [item.menu for item in result.analysis] == [f"day{day}" for day in range(1, 8)]

    def test_only_schools(self, services, make_farmer) -> None:
        with pytest.raises(ForbiddenError):
            services.queries.analyze(make_farmer())
