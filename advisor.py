"""
Canned advisory responses standing in for the text and image models.

Text queries are routed by keyword; image uploads get one of a small set
of diagnoses. Callers get a fresh dict each time so stored advisories never
share list objects with the catalogue.
"""
import copy
import random

MODEL_NAME = "keyword-matcher"

TEXT_RESPONSES = {
    "disease": {
        "text": (
            "Based on your description, this appears to be a fungal disease. I recommend applying "
            "a copper-based fungicide and ensuring proper air circulation around your plants."
        ),
        "confidence": 0.85,
        "recommendations": [
            "Apply copper-based fungicide every 7-10 days",
            "Improve air circulation by pruning dense foliage",
            "Water at the base of plants to avoid wetting leaves",
            "Remove and dispose of infected plant material",
        ],
        "category": "disease_detection",
    },
    "pest": {
        "text": (
            "This looks like aphid damage. These small insects feed on plant sap and can spread "
            "diseases. Here are some effective control methods."
        ),
        "confidence": 0.90,
        "recommendations": [
            "Spray with neem oil solution",
            "Introduce beneficial insects like ladybugs",
            "Use insecticidal soap",
            "Remove heavily infested plant parts",
        ],
        "category": "pest_identification",
    },
    "nutrient": {
        "text": (
            "Your plants are showing signs of nutrient deficiency. Based on the symptoms, this "
            "appears to be a nitrogen deficiency."
        ),
        "confidence": 0.80,
        "recommendations": [
            "Apply nitrogen-rich fertilizer",
            "Test soil pH and adjust if necessary",
            "Add organic matter like compost",
            "Consider crop rotation to improve soil health",
        ],
        "category": "nutrient_deficiency",
    },
    "weather": {
        "text": (
            "Based on your location and current weather patterns, here are some recommendations "
            "for your farming activities."
        ),
        "confidence": 0.75,
        "recommendations": [
            "Monitor soil moisture levels regularly",
            "Consider mulching to retain soil moisture",
            "Adjust irrigation schedule based on rainfall",
            "Protect young plants from extreme weather",
        ],
        "category": "weather_advice",
    },
}

# Checked in order; the first group with a matching keyword wins
KEYWORD_ROUTES = [
    (("disease", "fungus", "mold"), "disease"),
    (("pest", "insect", "bug"), "pest"),
    (("nutrient", "deficiency", "yellow"), "nutrient"),
]
DEFAULT_ROUTE = "weather"

IMAGE_RESPONSES = [
    {
        "text": (
            "I can see signs of early blight on your tomato plants. The dark spots with concentric "
            "rings are characteristic of this fungal disease."
        ),
        "confidence": 0.88,
        "recommendations": [
            "Remove affected leaves immediately",
            "Apply copper fungicide",
            "Improve air circulation",
            "Avoid overhead watering",
        ],
        "category": "disease_detection",
    },
    {
        "text": (
            "Your corn plants appear healthy with good growth. The leaves show normal green "
            "coloration without signs of nutrient deficiency."
        ),
        "confidence": 0.92,
        "recommendations": [
            "Continue current care routine",
            "Monitor for pest activity",
            "Ensure adequate spacing between plants",
            "Consider side-dressing with nitrogen fertilizer",
        ],
        "category": "general_question",
    },
]

# Practice categories worth suggesting next to each advisory category
RELATED_PRACTICE_CATEGORIES = {
    "disease_detection": ["pest_management", "organic_farming"],
    "pest_identification": ["pest_management", "biodiversity"],
    "nutrient_deficiency": ["soil_health", "organic_farming", "crop_rotation"],
    "weather_advice": ["water_management", "climate_adaptation"],
    "general_question": ["soil_health", "crop_rotation"],
}


def classify_query(query: str) -> str:
    lowered = (query or "").lower()
    for keywords, route in KEYWORD_ROUTES:
        if any(k in lowered for k in keywords):
            return route
    return DEFAULT_ROUTE


def answer_text_query(query: str, location=None, crop_info=None) -> dict:
    """Return the canned response whose keywords match the query.

    `location` and `crop_info` are accepted for parity with a real model
    call and are currently ignored.
    """
    response = copy.deepcopy(TEXT_RESPONSES[classify_query(query)])
    response["aiModel"] = MODEL_NAME
    return response


def analyze_image(image_path: str, query: str = "", chooser=random.choice) -> dict:
    response = copy.deepcopy(chooser(IMAGE_RESPONSES))
    response["aiModel"] = MODEL_NAME
    return response
