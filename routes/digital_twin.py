from typing import List, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from database import insert_with_id, paginate
from logger import get_logger
from schemas import LandSizeUnit, Simulation
from security import get_current_farmer
from simulator import CROPS, TEMPLATES, run_simulation

router = APIRouter()
logger = get_logger(__name__)


class SimulationIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    landSize: float = Field(..., ge=0)
    landSizeUnit: LandSizeUnit
    cropType: str = Field(..., min_length=1)
    soilType: Literal["sandy", "clay", "loamy", "silty"]
    climateZone: Literal["tropical", "subtropical", "temperate", "continental", "arid"]
    waterAvailability: Literal["low", "medium", "high"]
    budget: float
    sustainabilityGoals: List[str]


@router.post("/simulate")
def simulate(body: SimulationIn, farmer=Depends(get_current_farmer)):
    inputs = body.model_dump()
    simulation = run_simulation(inputs)
    # Stored with the farmer's location so runs can be compared by region later
    record = Simulation(
        farmerId=farmer["id"],
        simulationId=simulation["simulationId"],
        inputs={**inputs, "farmerLocation": farmer.get("location")},
        results=simulation["results"],
        recommendations=simulation["recommendations"],
        riskAssessment=simulation["riskAssessment"],
        timeline=simulation["timeline"],
    ).model_dump()
    insert_with_id("simulation", record)
    logger.info(
        "simulation_completed",
        farmer_id=farmer["id"],
        crop=body.cropType,
        sustainability=simulation["results"]["sustainabilityScore"],
    )
    return {"message": "Simulation completed successfully", "simulation": simulation}


@router.get("/history")
def simulation_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    farmer=Depends(get_current_farmer),
):
    items, pagination = paginate("simulation", {"farmerId": farmer["id"]}, page, limit, sort=[("createdAt", -1)])
    return {"simulations": items, "pagination": pagination}


@router.get("/templates")
def templates():
    return {"templates": TEMPLATES}


@router.get("/crops")
def crops():
    return {"crops": CROPS}
