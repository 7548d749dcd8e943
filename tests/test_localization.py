import pytest


def test_languages(client):
    languages = client.get("/api/localization/languages").json()["languages"]
    assert len(languages) == 7
    assert next(l for l in languages if l["code"] == "ar")["rtl"] is True


@pytest.mark.parametrize("location, language", [
    ({"country": "India", "state": "Punjab"}, "hi"),
    ({"country": "IN", "state": "Kerala"}, "en"),
    ({"country": "IN", "state": "Bihar"}, "hi"),
    ({"country": "Mexico"}, "es"),
    ({"country": "South America"}, "es"),
    ({"country": "Atlantis"}, "en"),
    ({}, "en"),
])
def test_detect(client, location, language):
    res = client.post("/api/localization/detect", json=location)
    body = res.json()
    assert body["detectedLanguage"] == language
    assert body["languageInfo"]["code"] == language
    assert body["confidence"] == 0.8
    assert body["detectionMethod"] == "location_based"


def test_translations(client):
    hindi = client.get("/api/localization/translations/hi").json()
    assert hindi["translations"]["nav.dashboard"] == "डैशबोर्ड"

    french = client.get("/api/localization/translations/fr").json()
    assert french["translations"]["nav.dashboard"] == "Dashboard"

    res = client.get("/api/localization/translations/xx")
    assert res.status_code == 400
    assert res.json()["message"] == "Unsupported language"


def test_preference_round_trip(client, headers):
    assert client.get("/api/localization/current", headers=headers).json()["currentLanguage"] == "en"

    res = client.put("/api/localization/preference", headers=headers, json={"language": "es"})
    assert res.status_code == 200
    assert res.json()["language"]["nativeName"] == "Español"

    current = client.get("/api/localization/current", headers=headers).json()
    assert current["currentLanguage"] == "es"
    assert len(current["supportedLanguages"]) == 7

    res = client.put("/api/localization/preference", headers=headers, json={"language": "klingon"})
    assert res.status_code == 400


def test_preference_requires_auth(client):
    assert client.put("/api/localization/preference", json={"language": "hi"}).status_code == 401
