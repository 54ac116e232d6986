import logging
from typing import Dict, List

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field, field_validator

from territory.errors import InvalidPolygonError, InvalidStateError
from territory.logbook import install_log_buffer
from territory.models import ConfirmedTerritory, GeoPoint
from territory.placement import PlacementValidator
from web.models import claims

router = APIRouter()
logger = logging.getLogger("uvicorn.error")
log_buffer = install_log_buffer()
placement_validator = PlacementValidator(claims.settings)


class FixRequest(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    accuracy_m: float | None = None
    timestamp: float | None = None
    speed_mps: float | None = None

    def to_point(self) -> GeoPoint:
        return GeoPoint(
            lat=self.lat,
            lon=self.lon,
            accuracy_m=self.accuracy_m,
            timestamp=self.timestamp,
            speed_mps=self.speed_mps,
        )


class PlacementRequest(BaseModel):
    path: List[Dict[str, float]]
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    clearance_m: float | None = Field(default=None, ge=0.0)

    @field_validator("path")
    @classmethod
    def ensure_path(cls, v):
        if len(v) < 3:
            raise ValueError("path must have at least 3 points")
        for p in v:
            if "lat" not in p or "lon" not in p:
                raise ValueError("path points need lat and lon")
        return v


def _state_conflict(exc: InvalidStateError):
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def _existing(device_id: str):
    session = claims.get(device_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No claim for this device")
    return session


@router.post("/claims/{device_id}/begin")
def begin_claim_endpoint(device_id: str):
    session = claims.get_or_create(device_id)
    with claims.lock_for(device_id):
        try:
            session.begin_claim()
        except InvalidStateError as e:
            raise _state_conflict(e)
        logger.info("Claim started for device %s", device_id)
        return session.snapshot()


@router.post("/claims/{device_id}/samples")
def submit_sample_endpoint(device_id: str, body: FixRequest):
    session = _existing(device_id)
    with claims.lock_for(device_id):
        try:
            update = session.submit_sample(body.to_point())
        except InvalidStateError as e:
            raise _state_conflict(e)
    warning = update.warning
    return {
        "state": update.state.value,
        "verdict": update.sample.verdict.value,
        "speed_mps": update.sample.speed_mps,
        "warning": None
        if warning is None
        else {
            "message": warning.message,
            "display_seconds": warning.display_seconds,
            "verdict": warning.verdict.value,
            "speed_kmh": warning.speed_kmh,
        },
        "result": update.result.to_dict() if update.result else None,
        "proximity": update.proximity.to_dict() if update.proximity else None,
    }


@router.post("/claims/{device_id}/resume")
def resume_claim_endpoint(device_id: str):
    session = _existing(device_id)
    with claims.lock_for(device_id):
        try:
            session.resume()
        except InvalidStateError as e:
            raise _state_conflict(e)
        return session.snapshot()


@router.post("/claims/{device_id}/confirm")
def confirm_claim_endpoint(device_id: str):
    session = _existing(device_id)
    with claims.lock_for(device_id):
        try:
            territory = session.confirm_and_extract()
        except InvalidStateError as e:
            raise _state_conflict(e)
        claims.discard(device_id)
    logger.info("Territory confirmed for device %s (%s)", device_id, territory.formatted_area)
    return territory.to_dict()


@router.post("/claims/{device_id}/cancel")
def cancel_claim_endpoint(device_id: str):
    session = _existing(device_id)
    with claims.lock_for(device_id):
        session.cancel()
        snapshot = session.snapshot()
        claims.discard(device_id)
        return snapshot


@router.get("/claims/{device_id}")
def get_claim_endpoint(device_id: str):
    session = _existing(device_id)
    with claims.lock_for(device_id):
        return session.snapshot()


@router.get("/claims-log", response_class=PlainTextResponse)
def claims_log_endpoint():
    return log_buffer.export()


@router.post("/placement/check")
def placement_check_endpoint(body: PlacementRequest):
    try:
        territory = ConfirmedTerritory.from_path_json(body.path)
    except InvalidPolygonError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    verdict = placement_validator.check_site(GeoPoint(lat=body.lat, lon=body.lon), territory, body.clearance_m)
    return verdict.to_dict()
