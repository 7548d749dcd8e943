"""Sample practice catalogue for demo databases."""
from database import get_collection, insert_with_id
from logger import get_logger, setup_logging
from schemas import Practice

logger = get_logger(__name__)

SAMPLE_PRACTICES = [
    {
        "title": "Cover Cropping",
        "description": "Grow cover crops between main seasons to protect and enrich the soil.",
        "detailedDescription": (
            "Cover crops such as clover, rye or vetch are planted after harvest. They hold soil in place, "
            "fix nitrogen, suppress weeds and add organic matter when turned under before the next planting."
        ),
        "category": "soil_health",
        "difficulty": "beginner",
        "estimatedTime": "2-3 months",
        "cost": "low",
        "benefits": ["Reduces erosion", "Improves soil fertility", "Suppresses weeds"],
        "requirements": ["Cover crop seed", "Basic tillage equipment"],
        "steps": [
            {"stepNumber": 1, "title": "Choose species", "description": "Pick a cover crop suited to your climate and rotation."},
            {"stepNumber": 2, "title": "Sow after harvest", "description": "Broadcast or drill seed soon after the main crop comes off."},
            {"stepNumber": 3, "title": "Terminate", "description": "Mow or roll the cover crop two to three weeks before planting."},
        ],
        "tags": ["soil", "nitrogen", "erosion"],
        "applicableCrops": ["wheat", "maize", "soybeans"],
        "environmentalImpact": {"carbonReduction": 70, "waterConservation": 60, "soilHealth": 90, "biodiversity": 65},
        "isFeatured": True,
    },
    {
        "title": "Drip Irrigation",
        "description": "Deliver water directly to plant roots through a network of low-flow emitters.",
        "detailedDescription": (
            "Drip lines place water at the root zone, cutting evaporation and runoff. Paired with a timer "
            "or soil moisture sensor it can halve water use compared to flood irrigation."
        ),
        "category": "water_management",
        "difficulty": "intermediate",
        "estimatedTime": "1-2 weeks",
        "cost": "medium",
        "benefits": ["Saves water", "Reduces disease on foliage", "Allows fertigation"],
        "requirements": ["Drip tubing and emitters", "Filter and pressure regulator", "Water source"],
        "steps": [
            {"stepNumber": 1, "title": "Plan the layout", "description": "Map beds and calculate flow per zone."},
            {"stepNumber": 2, "title": "Install mains and laterals", "description": "Lay tubing along each row with emitters at plant spacing."},
            {"stepNumber": 3, "title": "Flush and test", "description": "Flush the lines and check every emitter for even flow."},
        ],
        "tags": ["water", "irrigation", "efficiency"],
        "applicableCrops": ["tomatoes", "vegetables", "cotton"],
        "environmentalImpact": {"carbonReduction": 40, "waterConservation": 95, "soilHealth": 60, "biodiversity": 40},
        "isFeatured": True,
    },
    {
        "title": "Crop Rotation Planning",
        "description": "Rotate crop families across fields to break pest cycles and balance nutrients.",
        "detailedDescription": (
            "A rotation alternates cereals, legumes and root crops so that no family occupies the same field "
            "in consecutive seasons. Legumes restore nitrogen used by cereals."
        ),
        "category": "crop_rotation",
        "difficulty": "beginner",
        "estimatedTime": "1 season",
        "cost": "low",
        "benefits": ["Breaks pest cycles", "Balances nutrients", "Improves yields"],
        "requirements": ["Field map", "Season plan"],
        "tags": ["rotation", "planning", "legumes"],
        "applicableCrops": ["wheat", "rice", "maize", "soybeans"],
        "environmentalImpact": {"carbonReduction": 50, "waterConservation": 45, "soilHealth": 85, "biodiversity": 70},
    },
    {
        "title": "Integrated Pest Management",
        "description": "Combine monitoring, biological control and targeted sprays to keep pests below damage levels.",
        "detailedDescription": (
            "IPM relies on scouting and thresholds. Beneficial insects, traps and resistant varieties come first; "
            "pesticides are used only when counts exceed the action threshold and then at spot rates."
        ),
        "category": "pest_management",
        "difficulty": "advanced",
        "estimatedTime": "Ongoing",
        "cost": "medium",
        "benefits": ["Lower pesticide use", "Protects pollinators", "Slows resistance"],
        "requirements": ["Sticky traps", "Scouting schedule", "Hand lens"],
        "tags": ["pests", "biocontrol", "monitoring"],
        "applicableCrops": ["cotton", "vegetables", "rice"],
        "environmentalImpact": {"carbonReduction": 35, "waterConservation": 30, "soilHealth": 55, "biodiversity": 90},
    },
    {
        "title": "On-Farm Composting",
        "description": "Turn crop residue and manure into compost instead of burning or dumping it.",
        "detailedDescription": (
            "Layer green and brown material in a pile or windrow, keep it moist and turn it every one to two weeks. "
            "Finished compost returns nutrients and organic matter to the fields."
        ),
        "category": "waste_management",
        "difficulty": "beginner",
        "estimatedTime": "2-4 months",
        "cost": "low",
        "benefits": ["Recycles waste", "Builds organic matter", "Reduces fertilizer costs"],
        "requirements": ["Crop residue", "Manure", "Water source"],
        "tags": ["compost", "organic", "waste"],
        "applicableCrops": [],
        "environmentalImpact": {"carbonReduction": 60, "waterConservation": 50, "soilHealth": 80, "biodiversity": 55},
    },
]


def seed_practices() -> int:
    """Insert the sample catalogue when no practices exist yet; return how many were added."""
    col = get_collection("practice")
    if col.count_documents({}) > 0:
        logger.info("seed_skipped", reason="practices already present")
        return 0
    for sample in SAMPLE_PRACTICES:
        insert_with_id("practice", Practice(**sample).model_dump())
    logger.info("seed_completed", practices=len(SAMPLE_PRACTICES))
    return len(SAMPLE_PRACTICES)


if __name__ == "__main__":
    setup_logging()
    seed_practices()
