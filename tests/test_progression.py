from datetime import date

import pytest

import progression
from progression import (
    check_and_award_badges,
    eligible_badges,
    get_or_create,
    level_for_xp,
    level_progress,
    register_daily_activity,
    xp_for_level,
)


@pytest.mark.parametrize("xp, level", [(0, 1), (99, 1), (100, 2), (399, 2), (400, 3), (899, 3), (900, 4), (10000, 11)])
def test_level_for_xp(xp, level):
    assert level_for_xp(xp) == level


def test_level_for_negative_xp_is_rejected():
    with pytest.raises(ValueError):
        level_for_xp(-1)


def test_level_progress():
    assert xp_for_level(3) == 400
    assert level_progress(150, 2) == {"xpNeeded": 250, "xpProgress": 17}


def test_eligible_badges_uses_thresholds_and_skips_earned():
    ids = [b["badgeId"] for b in eligible_badges("advisory_query", 10, set())]
    assert ids == ["first_query", "curious_farmer"]
    ids = [b["badgeId"] for b in eligible_badges("advisory_query", 10, {"first_query"})]
    assert ids == ["curious_farmer"]
    assert eligible_badges("daily_active", 6, set()) == []


def test_eligible_badges_unknown_action():
    with pytest.raises(ValueError):
        eligible_badges("planting", 1, set())


def test_get_or_create_is_idempotent(mongo):
    first = get_or_create("f1")
    second = get_or_create("f1")
    assert first["_id"] == second["_id"]
    assert first["xp"] == 0 and first["level"] == 1
    assert mongo["gamification"].count_documents({"farmerId": "f1"}) == 1


def test_first_query_awards_badge_and_xp(mongo):
    result = check_and_award_badges("f1", "advisory_query", 1)
    assert result["xpGained"] == 10 + progression.BADGE_XP
    assert [b["badgeId"] for b in result["badgesEarned"]] == ["first_query"]
    assert result["leveledUp"] is False

    record = mongo["gamification"].find_one({"farmerId": "f1"})
    assert record["xp"] == 60
    assert record["badgeCount"] == 1
    assert record["stats"]["advisoryQueries"] == 1


def test_badge_is_awarded_once(mongo):
    check_and_award_badges("f1", "advisory_query", 1)
    again = check_and_award_badges("f1", "advisory_query", 1)
    assert again["badgesEarned"] == []
    assert again["xpGained"] == 10
    record = mongo["gamification"].find_one({"farmerId": "f1"})
    assert len(record["badges"]) == 1


def test_crossing_threshold_levels_up(mongo):
    mongo["gamification"].insert_one({"farmerId": "f1", "xp": 90, "level": 1, "badges": [], "stats": {}})
    result = check_and_award_badges("f1", "practice_adopted", 1)
    assert result["xpGained"] == 75
    assert result["leveledUp"] is True
    assert result["newLevel"] == 2
    record = mongo["gamification"].find_one({"farmerId": "f1"})
    assert record["level"] == 2
    assert record["stats"]["practicesAdopted"] == 1


def test_daily_streak(mongo):
    assert register_daily_activity("f1", today=date(2024, 3, 1)) == (1, True)
    assert register_daily_activity("f1", today=date(2024, 3, 1)) == (1, False)
    assert register_daily_activity("f1", today=date(2024, 3, 2)) == (2, True)
    # a missed day resets the streak
    assert register_daily_activity("f1", today=date(2024, 3, 4)) == (1, True)
    record = mongo["gamification"].find_one({"farmerId": "f1"})
    assert record["stats"]["daysActive"] == 3


def test_week_long_streak_earns_active_member(mongo):
    for day in range(1, 8):
        streak, counted = register_daily_activity("f1", today=date(2024, 3, day))
        assert counted
        result = check_and_award_badges("f1", "daily_active", streak)

    assert streak == 7
    assert [b["badgeId"] for b in result["badgesEarned"]] == ["active_member"]
    assert result["xpGained"] == 55
    record = mongo["gamification"].find_one({"farmerId": "f1"})
    assert record["xp"] == 6 * 5 + 55
    assert record["stats"]["currentStreak"] == 7


def test_month_long_streak_earns_dedicated_farmer(mongo):
    check_and_award_badges("f1", "daily_active", 7)
    result = check_and_award_badges("f1", "daily_active", 30)
    assert [b["badgeId"] for b in result["badgesEarned"]] == ["dedicated_farmer"]


def test_adoption_milestones(mongo):
    for count in range(1, 5):
        check_and_award_badges("f1", "practice_adopted", count)
    fifth = check_and_award_badges("f1", "practice_adopted", 5)
    assert [b["badgeId"] for b in fifth["badgesEarned"]] == ["green_thumb"]
    assert fifth["xpGained"] == 75

    twentieth = check_and_award_badges("f1", "practice_adopted", 20)
    assert [b["badgeId"] for b in twentieth["badgesEarned"]] == ["sustainability_champion"]
    record = mongo["gamification"].find_one({"farmerId": "f1"})
    assert record["badgeCount"] == 3


def test_daily_activity_from_stale_read_is_not_counted(mongo, monkeypatch):
    stale = get_or_create("f1")
    assert register_daily_activity("f1", today=date(2024, 3, 1)) == (1, True)

    # a second request that read the record before the first one wrote it
    monkeypatch.setattr(progression, "get_or_create", lambda farmer_id: stale)
    assert register_daily_activity("f1", today=date(2024, 3, 1)) == (0, False)
    record = mongo["gamification"].find_one({"farmerId": "f1"})
    assert record["stats"]["daysActive"] == 1
