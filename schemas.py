"""
Database Schemas for the Sustainable Farming Network (MongoDB collections)

Each Pydantic model represents a collection in your database.
Model name is converted to lowercase for the collection name:
- Farmer -> "farmer"
- Advisory -> "advisory"
- Practice -> "practice"
- Adoption -> "adoption"
- Gamification -> "gamification"
- Simulation -> "simulation"
- Message -> "message"
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


def _now():
    return datetime.now(timezone.utc)


def normalize_tags(tags):
    return [t.strip().lower() for t in tags if t.strip()]


LanguageCode = Literal["en", "hi", "es", "fr", "de", "zh", "ar"]
LandSizeUnit = Literal["acres", "hectares", "square_meters"]
AdvisoryCategory = Literal[
    "disease_detection",
    "pest_identification",
    "nutrient_deficiency",
    "soil_analysis",
    "crop_management",
    "weather_advice",
    "general_question",
]
PracticeCategory = Literal[
    "soil_health",
    "water_management",
    "crop_rotation",
    "pest_management",
    "organic_farming",
    "energy_efficiency",
    "waste_management",
    "biodiversity",
    "climate_adaptation",
]
Difficulty = Literal["beginner", "intermediate", "advanced"]
CostLevel = Literal["low", "medium", "high"]
Channel = Literal["sms", "whatsapp", "email"]

# ------------------------- Farmer -------------------------

class Coordinates(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class Location(BaseModel):
    country: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    coordinates: Optional[Coordinates] = None


class FarmDetails(BaseModel):
    landSize: float = Field(..., ge=0)
    landSizeUnit: LandSizeUnit = "acres"
    crops: List[str] = Field(default_factory=list)
    farmingExperience: int = Field(0, ge=0)


class NotificationPreferences(BaseModel):
    email: bool = True
    sms: bool = True
    whatsapp: bool = False


class Preferences(BaseModel):
    language: LanguageCode = "en"
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)


class Farmer(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    passwordHash: str
    phone: str
    location: Location
    farmDetails: FarmDetails
    preferences: Preferences = Field(default_factory=Preferences)
    isActive: bool = True
    lastLogin: Optional[datetime] = None
    createdAt: datetime = Field(default_factory=_now)
    updatedAt: datetime = Field(default_factory=_now)

# ------------------------- Advisory -------------------------

class AdvisoryImage(BaseModel):
    filename: str
    originalName: str
    path: str
    size: int
    mimeType: str


class AdvisoryResponse(BaseModel):
    text: str
    confidence: float = Field(0.8, ge=0, le=1)
    recommendations: List[str] = Field(default_factory=list)
    relatedPractices: List[str] = Field(default_factory=list)
    aiModel: str = "keyword-matcher"


class CropInfo(BaseModel):
    cropType: Optional[str] = None
    growthStage: Optional[str] = None
    plantingDate: Optional[datetime] = None


class Feedback(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    helpful: bool
    comments: Optional[str] = Field(None, max_length=500)
    submittedAt: datetime = Field(default_factory=_now)


class Advisory(BaseModel):
    farmerId: str
    type: Literal["text", "image", "general"]
    query: str = ""
    images: List[AdvisoryImage] = Field(default_factory=list)
    response: Optional[AdvisoryResponse] = None
    status: Literal["pending", "processing", "completed", "failed"] = "pending"
    priority: Literal["low", "medium", "high", "urgent"] = "medium"
    category: Optional[AdvisoryCategory] = None
    location: Optional[Location] = None
    cropInfo: Optional[CropInfo] = None
    feedback: Optional[Feedback] = None
    processingTime: int = 0  # milliseconds
    createdAt: datetime = Field(default_factory=_now)
    updatedAt: datetime = Field(default_factory=_now)

# ------------------------- Practice -------------------------

class PracticeStep(BaseModel):
    stepNumber: int = Field(..., ge=1)
    title: str
    description: str
    image: Optional[str] = None


class PracticeVideo(BaseModel):
    title: Optional[str] = None
    url: str
    duration: Optional[str] = None


class PracticeResource(BaseModel):
    title: str
    url: str
    type: Literal["article", "video", "document", "website"] = "article"


class ApplicableRegion(BaseModel):
    country: Optional[str] = None
    state: Optional[str] = None
    climate: Optional[str] = None


class EnvironmentalImpact(BaseModel):
    carbonReduction: Optional[float] = Field(None, ge=0, le=100)
    waterConservation: Optional[float] = Field(None, ge=0, le=100)
    soilHealth: Optional[float] = Field(None, ge=0, le=100)
    biodiversity: Optional[float] = Field(None, ge=0, le=100)


class AdoptionStats(BaseModel):
    totalAdoptions: int = Field(0, ge=0)
    successRate: float = Field(0, ge=0, le=100)
    averageRating: float = Field(0, ge=0, le=5)
    totalRatings: int = Field(0, ge=0)


class Practice(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    detailedDescription: str = Field(..., min_length=1)
    category: PracticeCategory
    difficulty: Difficulty = "beginner"
    estimatedTime: str
    cost: CostLevel
    benefits: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    steps: List[PracticeStep] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    videos: List[PracticeVideo] = Field(default_factory=list)
    resources: List[PracticeResource] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    applicableCrops: List[str] = Field(default_factory=list)
    applicableRegions: List[ApplicableRegion] = Field(default_factory=list)
    environmentalImpact: EnvironmentalImpact = Field(default_factory=EnvironmentalImpact)
    adoptionStats: AdoptionStats = Field(default_factory=AdoptionStats)
    isActive: bool = True
    isFeatured: bool = False
    createdBy: Optional[str] = None
    createdAt: datetime = Field(default_factory=_now)
    updatedAt: datetime = Field(default_factory=_now)

    @field_validator("tags")
    @classmethod
    def lowercase_tags(cls, v):
        return normalize_tags(v)


class Adoption(BaseModel):
    farmerId: str
    practiceId: str
    isImplemented: bool = False
    progress: int = Field(0, ge=0, le=100)
    notes: str = Field("", max_length=1000)
    implementationDate: Optional[datetime] = None
    adoptedAt: datetime = Field(default_factory=_now)
    updatedAt: datetime = Field(default_factory=_now)

# ------------------------- Gamification -------------------------

class Badge(BaseModel):
    badgeId: str
    name: str
    description: str
    icon: str
    category: Literal["sustainability", "knowledge", "community", "achievement"]
    earnedAt: Optional[datetime] = None


class Achievement(BaseModel):
    achievementId: str
    name: str
    description: str
    completedAt: datetime = Field(default_factory=_now)
    xpReward: int = 0


class ActivityStats(BaseModel):
    advisoryQueries: int = 0
    practicesAdopted: int = 0
    daysActive: int = 0
    currentStreak: int = 0
    communityContributions: int = 0


class Gamification(BaseModel):
    farmerId: str
    xp: int = Field(0, ge=0)
    level: int = Field(1, ge=1)
    badges: List[Badge] = Field(default_factory=list)
    badgeCount: int = 0
    achievements: List[Achievement] = Field(default_factory=list)
    stats: ActivityStats = Field(default_factory=ActivityStats)
    lastActiveDate: Optional[datetime] = None
    lastActivity: datetime = Field(default_factory=_now)
    createdAt: datetime = Field(default_factory=_now)
    updatedAt: datetime = Field(default_factory=_now)

# ------------------------- Simulation & Messages -------------------------

class Simulation(BaseModel):
    farmerId: str
    simulationId: str
    inputs: dict
    results: dict
    recommendations: List[dict] = Field(default_factory=list)
    riskAssessment: dict = Field(default_factory=dict)
    timeline: dict = Field(default_factory=dict)
    createdAt: datetime = Field(default_factory=_now)


class Message(BaseModel):
    farmerId: str
    channel: Channel
    to: str
    sender: Optional[str] = None
    body: str
    sid: Optional[str] = None
    status: Literal["queued", "sent", "delivered", "failed"] = "queued"
    provider: Literal["twilio", "demo", "none"] = "none"
    error: Optional[str] = None
    broadcastId: Optional[str] = None
    createdAt: datetime = Field(default_factory=_now)
