from fastapi import FastAPI

from web.models import claims
from web.router_claims import router as claims_router

app = FastAPI()

app.include_router(claims_router, prefix="/api")


@app.get("/")
def index():
    settings = claims.settings
    return {
        "service": "territory-claim",
        "closure_distance_m": settings.closure_distance_m,
        "min_area_m2": settings.min_area_m2,
        "max_speed_mps": settings.max_speed_mps,
        "placement_clearance_m": settings.placement_clearance_m,
    }
