import itertools

import pytest

from civic_dispatch.services.scoring import label_for, score, stars_for
from conftest import HOUR_MS, T0


class TestNoData:
    def test_empty_input_is_the_no_data_sentinel(self):
        result = score([])
        assert result.value == 0
        assert result.label == "No Data"
        assert result.star_rating == "0.0"
        assert result.has_data is False

    def test_earned_zero_is_distinguishable(self, make_issue):
        result = score([make_issue(T0, downvotes=3)])
        assert result.value == 0
        assert result.has_data is True
        assert result.label == "Under Review"


class TestComponents:
    def test_perfect_record_scores_100(self, make_issue):
        issues = [make_issue(T0 + n, resolved_at=T0 + n + HOUR_MS, upvotes=2) for n in range(4)]
        result = score(issues)
        assert result.value == 100
        assert result.label == "Excellent"
        assert result.star_rating == "5.0"

    def test_nothing_resolved_and_no_votes_is_neutral_trust_only(self, make_issue):
        result = score([make_issue(T0), make_issue(T0 + 1)])
        assert result.value == 20
        assert result.label == "Under Review"
        assert result.star_rating == "1.0"
        assert (result.efficiency, result.trust, result.responsiveness) == (0, 20, 0)

    def test_single_issue_resolved_in_two_hours(self, make_issue):
        result = score([make_issue(T0, resolved_at=T0 + 2 * HOUR_MS)])
        assert result.responsiveness == 5
        assert result.efficiency == 40
        assert result.trust == 20
        assert result.value == 65
        assert result.label == "Good"
        assert result.star_rating == "3.3"

    def test_slow_resolution_earns_no_responsiveness(self, make_issue):
        result = score([make_issue(T0, resolved_at=T0 + 25 * HOUR_MS)])
        assert result.responsiveness == 0
        assert result.value == 60

    def test_exactly_24_hours_is_not_fast(self, make_issue):
        result = score([make_issue(T0, resolved_at=T0 + 24 * HOUR_MS)])
        assert result.responsiveness == 0

    def test_responsiveness_caps_at_20(self, make_issue):
        issues = [make_issue(T0 + n, resolved_at=T0 + n + 1) for n in range(7)]
        assert score(issues).responsiveness == 20

    def test_unresolved_issues_earn_no_responsiveness(self, make_issue):
        issues = [make_issue(T0, resolved_at=T0 + HOUR_MS), make_issue(T0 + 1), make_issue(T0 + 2)]
        assert score(issues).responsiveness == 5

    def test_trust_is_upvote_share(self, make_issue):
        result = score([make_issue(T0, upvotes=3, downvotes=1)])
        assert result.trust == 30
        assert result.value == 30

    def test_efficiency_is_resolved_share(self, make_issue):
        issues = [make_issue(T0, resolved_at=T0 + 30 * HOUR_MS), make_issue(T0 + 1)]
        result = score(issues)
        assert result.efficiency == 20
        assert result.value == 40


class TestBounds:
    def test_value_and_stars_stay_in_range(self, make_issue):
        for resolved, up, down, fast in itertools.product(range(3), range(3), range(3), (True, False)):
            issues = []
            for n in range(3):
                done = n < resolved
                gap = HOUR_MS if fast else 48 * HOUR_MS
                issues.append(make_issue(
                    T0 + n,
                    resolved_at=(T0 + n + gap) if done else None,
                    upvotes=up,
                    downvotes=down,
                ))
            result = score(issues)
            assert 0 <= result.value <= 100
            assert 0.0 <= float(result.star_rating) <= 5.0


class TestLabels:
    @pytest.mark.parametrize("value, label", [
        (100, "Excellent"),
        (90, "Excellent"),
        (89, "Good"),
        (50, "Good"),
        (49, "Under Review"),
        (0, "Under Review"),
    ])
    def test_breakpoints(self, value, label):
        assert label_for(value) == label

    @pytest.mark.parametrize("value, stars", [(0, "0.0"), (20, "1.0"), (65, "3.3"), (89, "4.5"), (100, "5.0")])
    def test_star_rating_has_one_decimal(self, value, stars):
        assert stars_for(value) == stars
