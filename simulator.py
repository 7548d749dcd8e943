"""
Formula-based crop outcome estimator ("digital twin").

Everything here is a pure function of its inputs: land is normalised to
hectares, per-crop tables give yield and price, and a handful of additive
formulas produce the sustainability indicators.
"""
import math
from datetime import datetime, timezone

ACRE_IN_HECTARES = 0.404686
SQUARE_METERS_PER_HECTARE = 10000
COST_PER_HECTARE = 800

# tons per hectare
BASE_YIELD = {
    "wheat": 3.5,
    "rice": 4.2,
    "corn": 8.5,
    "soybean": 2.8,
    "tomato": 45.0,
    "potato": 20.0,
}
DEFAULT_YIELD = 3.0

# dollars per ton
PRICE_PER_TON = {
    "wheat": 200,
    "rice": 300,
    "corn": 180,
    "soybean": 400,
    "tomato": 500,
    "potato": 150,
}
DEFAULT_PRICE = 250

WATER_BONUS = {"high": 10, "medium": 5}
SOIL_BONUS = {"loamy": 10, "clay": 5}

SOIL_TYPES = ("sandy", "clay", "loamy", "silty")
CLIMATE_ZONES = ("tropical", "subtropical", "temperate", "continental", "arid")
WATER_LEVELS = ("low", "medium", "high")

TEMPLATES = [
    {
        "id": "beginner_farmer",
        "name": "Beginner Farmer",
        "description": "Template for new farmers with basic setup",
        "landSize": 1,
        "landSizeUnit": "hectares",
        "cropType": "wheat",
        "soilType": "loamy",
        "climateZone": "temperate",
        "waterAvailability": "medium",
        "budget": 5000,
        "sustainabilityGoals": ["soil_health", "water_management"],
    },
    {
        "id": "sustainable_farming",
        "name": "Sustainable Farming",
        "description": "Template focused on sustainable practices",
        "landSize": 5,
        "landSizeUnit": "hectares",
        "cropType": "corn",
        "soilType": "loamy",
        "climateZone": "temperate",
        "waterAvailability": "high",
        "budget": 25000,
        "sustainabilityGoals": ["soil_health", "water_management", "biodiversity", "organic_farming"],
    },
    {
        "id": "commercial_farming",
        "name": "Commercial Farming",
        "description": "Template for large-scale commercial operations",
        "landSize": 50,
        "landSizeUnit": "hectares",
        "cropType": "soybean",
        "soilType": "clay",
        "climateZone": "continental",
        "waterAvailability": "high",
        "budget": 200000,
        "sustainabilityGoals": ["efficiency", "profitability", "soil_health"],
    },
    {
        "id": "organic_farming",
        "name": "Organic Farming",
        "description": "Template for organic farming practices",
        "landSize": 3,
        "landSizeUnit": "hectares",
        "cropType": "tomato",
        "soilType": "loamy",
        "climateZone": "subtropical",
        "waterAvailability": "medium",
        "budget": 15000,
        "sustainabilityGoals": ["organic_farming", "biodiversity", "soil_health", "pest_management"],
    },
]

CROPS = [
    {
        "name": "Wheat",
        "scientificName": "Triticum aestivum",
        "growingSeason": "Winter/Spring",
        "waterRequirement": "Medium",
        "soilType": "Loamy, Clay",
        "climateZone": "Temperate",
        "averageYield": "3.5 tons/hectare",
        "marketPrice": "$200/ton",
        "sustainabilityScore": 75,
    },
    {
        "name": "Rice",
        "scientificName": "Oryza sativa",
        "growingSeason": "Summer",
        "waterRequirement": "High",
        "soilType": "Clay, Loamy",
        "climateZone": "Tropical, Subtropical",
        "averageYield": "4.2 tons/hectare",
        "marketPrice": "$300/ton",
        "sustainabilityScore": 70,
    },
    {
        "name": "Corn",
        "scientificName": "Zea mays",
        "growingSeason": "Summer",
        "waterRequirement": "Medium-High",
        "soilType": "Loamy, Sandy",
        "climateZone": "Temperate, Subtropical",
        "averageYield": "8.5 tons/hectare",
        "marketPrice": "$180/ton",
        "sustainabilityScore": 80,
    },
    {
        "name": "Soybean",
        "scientificName": "Glycine max",
        "growingSeason": "Summer",
        "waterRequirement": "Medium",
        "soilType": "Loamy, Clay",
        "climateZone": "Temperate, Continental",
        "averageYield": "2.8 tons/hectare",
        "marketPrice": "$400/ton",
        "sustainabilityScore": 85,
    },
    {
        "name": "Tomato",
        "scientificName": "Solanum lycopersicum",
        "growingSeason": "Spring/Summer",
        "waterRequirement": "Medium",
        "soilType": "Loamy, Sandy",
        "climateZone": "Temperate, Subtropical",
        "averageYield": "45 tons/hectare",
        "marketPrice": "$500/ton",
        "sustainabilityScore": 65,
    },
    {
        "name": "Potato",
        "scientificName": "Solanum tuberosum",
        "growingSeason": "Spring/Summer",
        "waterRequirement": "Medium",
        "soilType": "Sandy, Loamy",
        "climateZone": "Temperate, Continental",
        "averageYield": "20 tons/hectare",
        "marketPrice": "$150/ton",
        "sustainabilityScore": 70,
    },
]


def round_half_up(value: float, digits: int = 0):
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def to_hectares(land_size: float, unit: str) -> float:
    if unit == "acres":
        return land_size * ACRE_IN_HECTARES
    if unit == "square_meters":
        return land_size / SQUARE_METERS_PER_HECTARE
    return land_size


def sustainability_score(goals, water_availability: str, soil_type: str) -> float:
    raw = 70 + len(goals) * 5 + WATER_BONUS.get(water_availability, 0) + SOIL_BONUS.get(soil_type, 0)
    return min(95, max(60, raw))


def build_recommendations(score: float, water_usage: float, soil_health: float):
    recommendations = []
    if score < 80:
        recommendations.append({
            "category": "sustainability",
            "priority": "high",
            "title": "Improve Sustainability Practices",
            "description": "Implement crop rotation and organic farming methods to improve sustainability score",
            "impact": "Increase sustainability score by 15-20 points",
            "cost": "medium",
            "timeline": "3-6 months",
        })
    if water_usage > 4000:
        recommendations.append({
            "category": "water_management",
            "priority": "high",
            "title": "Optimize Water Usage",
            "description": "Implement drip irrigation and water conservation techniques",
            "impact": "Reduce water usage by 30-40%",
            "cost": "high",
            "timeline": "2-4 months",
        })
    if soil_health < 70:
        recommendations.append({
            "category": "soil_health",
            "priority": "medium",
            "title": "Improve Soil Health",
            "description": "Add organic matter, implement cover cropping, and reduce tillage",
            "impact": "Improve soil health by 20-25 points",
            "cost": "low",
            "timeline": "6-12 months",
        })
    return recommendations


def run_simulation(inputs: dict, now: datetime = None) -> dict:
    """Estimate yield, finances and sustainability indicators for one scenario.

    `inputs` carries landSize, landSizeUnit, cropType, soilType, climateZone,
    waterAvailability, budget and sustainabilityGoals.
    """
    now = now or datetime.now(timezone.utc)
    goals = list(inputs.get("sustainabilityGoals") or [])
    water = inputs["waterAvailability"]
    soil = inputs["soilType"]
    crop = inputs["cropType"].strip().lower()

    hectares = to_hectares(inputs["landSize"], inputs["landSizeUnit"])
    estimated_yield = BASE_YIELD.get(crop, DEFAULT_YIELD) * hectares

    score = sustainability_score(goals, water, soil)
    carbon_footprint = max(0.5, 2.0 - len(goals) * 0.2)
    water_usage = max(2000, 5000 - (1000 if water == "high" else 0))
    soil_health = min(100, 60 + (20 if "soil_health" in goals else 0))

    revenue = estimated_yield * PRICE_PER_TON.get(crop, DEFAULT_PRICE)
    costs = hectares * COST_PER_HECTARE
    profit = revenue - costs

    return {
        "simulationId": f"sim_{int(now.timestamp() * 1000)}",
        "timestamp": now.isoformat(),
        "inputs": inputs,
        "results": {
            "landSizeHectares": round_half_up(hectares, 6),
            "estimatedYield": round_half_up(estimated_yield, 2),
            "estimatedRevenue": round_half_up(revenue),
            "estimatedCosts": round_half_up(costs),
            "estimatedProfit": round_half_up(profit),
            "sustainabilityScore": round_half_up(score),
            "carbonFootprint": round_half_up(carbon_footprint, 2),
            "waterUsage": round_half_up(water_usage),
            "soilHealth": round_half_up(soil_health),
        },
        "recommendations": build_recommendations(score, water_usage, soil_health),
        "riskAssessment": {
            "weatherRisk": "high" if water == "low" else "medium",
            "marketRisk": "medium",
            "pestRisk": "low",
            "overallRisk": "medium",
        },
        "timeline": {
            "plantingSeason": "March-April",
            "harvestSeason": "August-September",
            "totalDuration": "6 months",
        },
    }
