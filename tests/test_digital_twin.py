SCENARIO = {
    "landSize": 2,
    "landSizeUnit": "hectares",
    "cropType": "rice",
    "soilType": "clay",
    "climateZone": "tropical",
    "waterAvailability": "high",
    "budget": 3000,
    "sustainabilityGoals": ["water_conservation"],
}


def test_simulate_stores_run(client, headers, mongo):
    res = client.post("/api/digital-twin/simulate", headers=headers, json=SCENARIO)
    assert res.status_code == 200
    simulation = res.json()["simulation"]
    assert simulation["results"]["estimatedYield"] == 8.4
    assert simulation["results"]["estimatedRevenue"] == 2520
    assert simulation["results"]["estimatedCosts"] == 1600
    assert simulation["results"]["estimatedProfit"] == 920
    assert simulation["results"]["sustainabilityScore"] == 90

    stored = mongo["simulation"].find_one({"simulationId": simulation["simulationId"]})
    assert stored["inputs"]["farmerLocation"]["city"] == "Ludhiana"


def test_simulate_validates_inputs(client, headers):
    res = client.post("/api/digital-twin/simulate", headers=headers, json=dict(SCENARIO, soilType="rocky"))
    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "soilType"


def test_history(client, headers):
    client.post("/api/digital-twin/simulate", headers=headers, json=SCENARIO)
    res = client.get("/api/digital-twin/history", headers=headers)
    body = res.json()
    assert body["pagination"]["totalItems"] == 1
    assert body["simulations"][0]["results"]["soilHealth"] == 60


def test_catalogues(client):
    assert len(client.get("/api/digital-twin/templates").json()["templates"]) == 4
    assert len(client.get("/api/digital-twin/crops").json()["crops"]) == 6
