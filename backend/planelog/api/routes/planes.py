from typing import List
from fastapi import APIRouter, Depends, Form, UploadFile, File as FastAPIFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from planelog.core.errors import ServiceError
from planelog.core.database import get_db
from planelog.api.dependencies import get_current_email
from planelog.api.schemas import PlaneCreatedResponse, PlaneResponse
from planelog.services.plane_service import plane_service
from planelog.storage.local_storage import storage

router = APIRouter(tags=["planes"])


@router.post("/add-plane", response_model=PlaneCreatedResponse, status_code=status.HTTP_201_CREATED)
async def add_plane(
    airport: str = Form(""),
    airline: str = Form(""),
    plane_model: str = Form("", alias="planeModel"),
    registration: str = Form(""),
    arrival_date: str = Form("", alias="arrivalDate"),
    departure_date: str = Form("", alias="departureDate"),
    plane_image: UploadFile | None = FastAPIFile(None, alias="planeImage"),
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db)
):
    """Submit a plane sighting, optionally with a photo"""
    fields = {
        "airport": airport,
        "airline": airline,
        "plane_model": plane_model,
        "registration": registration,
        "arrival_date": arrival_date,
        "departure_date": departure_date,
    }
    image_path = ""
    # Validate before touching disk so a rejected request leaves no file behind
    plane_service.validate_fields(fields)
    if plane_image is not None and plane_image.filename:
        image_path = await storage.save_file(plane_image)

    try:
        plane_id = plane_service.add_plane_record(db, email, fields, image_path)
    except (ServiceError, SQLAlchemyError):
        # No record points at the image, so don't leave it on disk
        if image_path:
            storage.delete_file(image_path)
        raise
    return PlaneCreatedResponse(message="Plane added", plane_id=plane_id)


@router.get("/planes/{airport}", response_model=List[PlaneResponse])
async def list_planes(airport: str, db: Session = Depends(get_db)):
    """All sightings at an airport"""
    return plane_service.list_plane_records(db, airport)


@router.get("/planes/{airport}/{airline}", response_model=List[PlaneResponse])
async def list_planes_for_airline(airport: str, airline: str, db: Session = Depends(get_db)):
    """Sightings at an airport for one airline"""
    return plane_service.list_plane_records(db, airport, airline)


@router.get("/airlines/{airport}", response_model=List[str])
async def list_airlines(airport: str, db: Session = Depends(get_db)):
    """Airlines seen at an airport"""
    return plane_service.list_airlines(db, airport)
