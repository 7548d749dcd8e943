def test_get_profile(client, headers):
    res = client.get("/api/profile", headers=headers)
    assert res.status_code == 200
    assert res.json()["farmer"]["name"] == "Asha Patel"


def test_partial_update_keeps_sibling_fields(client, headers, mongo):
    res = client.put(
        "/api/profile",
        headers=headers,
        json={
            "name": "Asha P.",
            "location": {"city": "Amritsar", "coordinates": {"latitude": 31.6, "longitude": 74.9}},
            "preferences": {"notifications": {"whatsapp": True}},
        },
    )
    assert res.status_code == 200
    farmer = res.json()["farmer"]
    assert res.json()["message"] == "Profile updated successfully"
    assert farmer["name"] == "Asha P."
    assert farmer["location"] == {
        "country": "India",
        "state": "Punjab",
        "city": "Amritsar",
        "coordinates": {"latitude": 31.6, "longitude": 74.9},
    }
    assert farmer["preferences"]["notifications"] == {"email": True, "sms": True, "whatsapp": True}
    assert farmer["farmDetails"]["crops"] == ["wheat", "rice"]


def test_update_rejects_invalid_values(client, headers):
    res = client.put("/api/profile", headers=headers, json={"preferences": {"language": "xx"}})
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "preferences.language"


def test_change_password(client, headers):
    res = client.put(
        "/api/profile/password",
        headers=headers,
        json={"currentPassword": "wrong-pass", "newPassword": "another1"},
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Current password is incorrect"

    res = client.put(
        "/api/profile/password",
        headers=headers,
        json={"currentPassword": "secret123", "newPassword": "another1"},
    )
    assert res.status_code == 200
    login = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "another1"})
    assert login.status_code == 200


def test_deactivate(client, headers, mongo):
    res = client.delete("/api/profile", headers=headers)
    assert res.json()["message"] == "Account deactivated successfully"
    assert mongo["farmer"].find_one({"email": "asha@example.com"})["isActive"] is False
