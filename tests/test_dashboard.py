from datetime import datetime, timedelta, timezone

from conftest import practice_payload
from routes.dashboard import time_ago

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_time_ago():
    assert time_ago(NOW - timedelta(seconds=30), NOW) == "Just now"
    assert time_ago(NOW - timedelta(minutes=1), NOW) == "1 minute ago"
    assert time_ago(NOW - timedelta(minutes=45), NOW) == "45 minutes ago"
    assert time_ago(NOW - timedelta(hours=3), NOW) == "3 hours ago"
    assert time_ago((NOW - timedelta(days=1)).replace(tzinfo=None), NOW) == "1 day ago"


def test_stats_and_activities(client, headers):
    practice = client.post("/api/practices", headers=headers, json=practice_payload()).json()["practice"]
    client.post(f"/api/practices/{practice['id']}/adopt", headers=headers)
    client.post(
        f"/api/practices/{practice['id']}/implement",
        headers=headers,
        json={"isImplemented": True, "implementationDate": "2024-01-01T08:00:00Z"},
    )
    client.post("/api/advisory/text", headers=headers, json={"query": "How do I stop pests on my cotton?"})

    stats = client.get("/api/dashboard/stats", headers=headers).json()
    assert stats == {"totalFarmers": 1, "activePractices": 1, "advisoryQueries": 1, "sustainabilityScore": 60}

    activities = client.get("/api/dashboard/activities", headers=headers).json()
    assert [a["type"] for a in activities] == ["advisory", "practice"]
    assert activities[0]["message"] == "AI recommendation: How do I stop pests on my cotton?..."
    assert activities[0]["time"] == "Just now"
    assert activities[1]["message"] == "Implemented: Mulching"
    assert activities[1]["time"].endswith("days ago")


def test_stats_without_implementations(client, headers):
    stats = client.get("/api/dashboard/stats", headers=headers).json()
    assert stats["activePractices"] == 0
    assert stats["sustainabilityScore"] == 0


def test_weather_uses_farmer_city(client, headers):
    weather = client.get("/api/dashboard/weather", headers=headers).json()
    assert weather["location"] == "Ludhiana"
    assert 15 <= weather["temperature"] <= 35
    assert weather["condition"] in {"Sunny", "Cloudy", "Rainy", "Partly Cloudy"}
