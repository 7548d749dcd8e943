from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from database import get_collection, id_query, now_utc
from schemas import Coordinates, LanguageCode
from security import get_current_farmer

router = APIRouter()

# Country codes and continents to a default language
LANGUAGE_MAPPING = {
    "IN": "hi",
    "US": "en",
    "GB": "en",
    "CA": "en",
    "AU": "en",
    "ES": "es",
    "MX": "es",
    "AR": "es",
    "FR": "fr",
    "DE": "de",
    "CN": "zh",
    "SA": "ar",
    "EG": "ar",
    "AE": "ar",
    "North America": "en",
    "South America": "es",
    "Europe": "en",
    "Asia": "en",
    "Africa": "en",
    "Oceania": "en",
}

COUNTRY_CODES = {
    "India": "IN",
    "United States": "US",
    "United Kingdom": "GB",
    "Canada": "CA",
    "Australia": "AU",
    "Spain": "ES",
    "Mexico": "MX",
    "Argentina": "AR",
    "France": "FR",
    "Germany": "DE",
    "China": "CN",
    "Saudi Arabia": "SA",
    "Egypt": "EG",
    "United Arab Emirates": "AE",
}

HINDI_STATES = ("Punjab", "Haryana", "Delhi")
ENGLISH_STATES = ("Tamil Nadu", "Kerala", "Karnataka")

SUPPORTED_LANGUAGES = {
    "en": {"code": "en", "name": "English", "nativeName": "English", "flag": "🇺🇸", "rtl": False},
    "hi": {"code": "hi", "name": "Hindi", "nativeName": "हिन्दी", "flag": "🇮🇳", "rtl": False},
    "es": {"code": "es", "name": "Spanish", "nativeName": "Español", "flag": "🇪🇸", "rtl": False},
    "fr": {"code": "fr", "name": "French", "nativeName": "Français", "flag": "🇫🇷", "rtl": False},
    "de": {"code": "de", "name": "German", "nativeName": "Deutsch", "flag": "🇩🇪", "rtl": False},
    "zh": {"code": "zh", "name": "Chinese", "nativeName": "中文", "flag": "🇨🇳", "rtl": False},
    "ar": {"code": "ar", "name": "Arabic", "nativeName": "العربية", "flag": "🇸🇦", "rtl": True},
}

TRANSLATIONS = {
    "en": {
        "app.title": "SFN Demo - Sustainable Farming Network",
        "app.subtitle": "AI-Powered Agricultural Advisory",
        "nav.dashboard": "Dashboard",
        "nav.advisory": "Advisory",
        "nav.practices": "Practices",
        "nav.simulation": "Digital Twin",
        "nav.communication": "Communication",
        "nav.profile": "Profile",
        "auth.login": "Login",
        "auth.register": "Register",
        "auth.logout": "Logout",
        "common.save": "Save",
        "common.cancel": "Cancel",
        "common.delete": "Delete",
        "common.edit": "Edit",
        "common.view": "View",
        "common.loading": "Loading...",
        "common.error": "Error",
        "common.success": "Success",
    },
    "hi": {
        "app.title": "SFN डेमो - सतत कृषि नेटवर्क",
        "app.subtitle": "AI-संचालित कृषि सलाह",
        "nav.dashboard": "डैशबोर्ड",
        "nav.advisory": "सलाह",
        "nav.practices": "अभ्यास",
        "nav.simulation": "डिजिटल ट्विन",
        "nav.communication": "संचार",
        "nav.profile": "प्रोफ़ाइल",
        "auth.login": "लॉगिन",
        "auth.register": "रजिस्टर",
        "auth.logout": "लॉगआउट",
        "common.save": "सहेजें",
        "common.cancel": "रद्द करें",
        "common.delete": "हटाएं",
        "common.edit": "संपादित करें",
        "common.view": "देखें",
        "common.loading": "लोड हो रहा है...",
        "common.error": "त्रुटि",
        "common.success": "सफलता",
    },
    "es": {
        "app.title": "SFN Demo - Red de Agricultura Sostenible",
        "app.subtitle": "Asesoramiento Agrícola Impulsado por IA",
        "nav.dashboard": "Panel",
        "nav.advisory": "Asesoramiento",
        "nav.practices": "Prácticas",
        "nav.simulation": "Gemelo Digital",
        "nav.communication": "Comunicación",
        "nav.profile": "Perfil",
        "auth.login": "Iniciar Sesión",
        "auth.register": "Registrarse",
        "auth.logout": "Cerrar Sesión",
        "common.save": "Guardar",
        "common.cancel": "Cancelar",
        "common.delete": "Eliminar",
        "common.edit": "Editar",
        "common.view": "Ver",
        "common.loading": "Cargando...",
        "common.error": "Error",
        "common.success": "Éxito",
    },
}


class DetectIn(BaseModel):
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    coordinates: Optional[Coordinates] = None


class PreferenceIn(BaseModel):
    language: LanguageCode


def detect_language(country: Optional[str], state: Optional[str] = None) -> str:
    code = country if country in LANGUAGE_MAPPING else COUNTRY_CODES.get(country or "")
    language = LANGUAGE_MAPPING.get(code, "en")
    if code == "IN" and state:
        if state in HINDI_STATES:
            language = "hi"
        elif state in ENGLISH_STATES:
            language = "en"
    return language


@router.get("/languages")
def languages():
    return {"languages": list(SUPPORTED_LANGUAGES.values())}


@router.post("/detect")
def detect(body: DetectIn):
    language = detect_language(body.country, body.state)
    return {
        "detectedLanguage": language,
        "languageInfo": SUPPORTED_LANGUAGES[language],
        "confidence": 0.8,
        "detectionMethod": "location_based",
    }


@router.get("/translations/{language}")
def translations(language: str):
    if language not in SUPPORTED_LANGUAGES:
        raise HTTPException(status_code=400, detail="Unsupported language")
    return {
        "language": language,
        "translations": TRANSLATIONS.get(language, TRANSLATIONS["en"]),
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
    }


@router.put("/preference")
def update_preference(body: PreferenceIn, farmer=Depends(get_current_farmer)):
    get_collection("farmer").update_one(
        id_query(farmer["id"]),
        {"$set": {"preferences.language": body.language, "updatedAt": now_utc()}},
    )
    return {"message": "Language preference updated successfully", "language": SUPPORTED_LANGUAGES[body.language]}


@router.get("/current")
def current_language(farmer=Depends(get_current_farmer)):
    current = (farmer.get("preferences") or {}).get("language") or "en"
    return {
        "currentLanguage": current,
        "languageInfo": SUPPORTED_LANGUAGES[current],
        "supportedLanguages": list(SUPPORTED_LANGUAGES.values()),
    }
