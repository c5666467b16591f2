"""
Tests for citizen scoring and badges
"""
import pytest

import sys
sys.path.insert(0, '.')

from citywatch.scoring.badges import (
    BadgeTier,
    ScoreEvent,
    apply_score_event,
    badge_for_score,
    is_in_warning_zone,
    is_suspended,
    standing_for_score,
)


class TestBadgeTiers:
    """Test suite for badge thresholds."""

    @pytest.mark.parametrize("score,tier", [
        (150, BadgeTier.ELITE),
        (100, BadgeTier.ELITE),
        (99, BadgeTier.GOLD),
        (75, BadgeTier.GOLD),
        (50, BadgeTier.SILVER),
        (25, BadgeTier.BRONZE),
        (24, BadgeTier.NEW),
        (0, BadgeTier.NEW),
        (-1, BadgeTier.WARNING),
        (-80, BadgeTier.WARNING),
        (-81, BadgeTier.SUSPENDED),
    ])
    def test_badge_for_score(self, score, tier):
        """Each score maps to exactly one tier."""
        assert badge_for_score(score) == tier

    def test_labels(self):
        """Badge labels carry their emoji."""
        assert BadgeTier.ELITE.label == "🏆 Elite Citizen"
        assert BadgeTier.SILVER.label == "🥈 Silver Citizen"
        assert BadgeTier.SUSPENDED.label == "🚫 Suspended Citizen"

    def test_from_label_accepts_label_and_value(self):
        """Stored badges resolve back to tiers."""
        assert BadgeTier.from_label("⭐ Gold Citizen") == BadgeTier.GOLD
        assert BadgeTier.from_label("gold") == BadgeTier.GOLD
        assert BadgeTier.from_label("Platinum") is None
        assert BadgeTier.from_label(None) is None

    def test_recommended_tiers(self):
        """Only Elite and Gold are recommended."""
        recommended = [t for t in BadgeTier if t.is_recommended]
        assert recommended == [BadgeTier.ELITE, BadgeTier.GOLD]


class TestSuspension:
    """Test suite for suspension and warning zone."""

    def test_suspension_boundary(self):
        """Suspension starts strictly below -80."""
        assert not is_suspended(-80)
        assert is_suspended(-81)

    def test_warning_zone(self):
        """Warning zone covers [-80, 0)."""
        assert is_in_warning_zone(-1)
        assert is_in_warning_zone(-80)
        assert not is_in_warning_zone(0)
        assert not is_in_warning_zone(-81)

    def test_standing(self):
        """Standing summarizes score consequences."""
        standing = standing_for_score(-100)
        assert standing["suspended"] is True
        assert standing["warning"] is False
        assert standing["tier"] == "suspended"

        standing = standing_for_score(80)
        assert standing["badge"] == "⭐ Gold Citizen"
        assert standing["is_recommended"] is True


class TestScoreEvents:
    """Test suite for applying report outcomes."""

    def test_accepted_adds_ten(self):
        """Accepted reports earn 10 points."""
        update = apply_score_event(0, ScoreEvent.ACCEPTED)
        assert update.new_score == 10
        assert update.delta == 10
        assert not update.badge_changed

    def test_rejected_removes_twenty(self):
        """Rejected reports cost 20 points."""
        update = apply_score_event(0, ScoreEvent.REJECTED)
        assert update.new_score == -20
        assert update.new_badge == BadgeTier.WARNING
        assert update.badge_changed

    def test_promotion_to_gold(self):
        """Crossing 75 earns Gold and a recommendation."""
        update = apply_score_event(70, ScoreEvent.ACCEPTED)
        assert update.previous_badge == BadgeTier.SILVER
        assert update.new_badge == BadgeTier.GOLD
        assert update.is_recommended

    def test_five_rejections_suspend(self):
        """Five rejections from zero lead to suspension."""
        score = 0
        for _ in range(5):
            score = apply_score_event(score, ScoreEvent.REJECTED).new_score
        assert score == -100
        assert is_suspended(score)

    def test_to_dict(self):
        """Score update serializes labels."""
        data = apply_score_event(20, ScoreEvent.ACCEPTED).to_dict()
        assert data["event"] == "accepted"
        assert data["new_badge"] == "🥉 Bronze Citizen"
        assert data["badge_changed"] is True
