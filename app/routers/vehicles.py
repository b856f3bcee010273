# app/routers/vehicles.py
"""Vehicle registration, listing and removal, scoped to the authenticated owner."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.common import ApiResponse
from app.schemas.vehicle import VehicleCreate, VehicleOut
from app.services import vehicle_service
from app.services.identity import AuthenticatedUser, get_current_user

router = APIRouter()


@router.get("/vehicles", response_model=ApiResponse, summary="List my vehicles")
def list_vehicles(user: AuthenticatedUser = Depends(get_current_user),
                  db: Session = Depends(get_db)):
    vehicles = [
        VehicleOut.model_validate(v).model_dump(by_alias=True, mode="json")
        for v in vehicle_service.list_vehicles(db, user)
    ]
    return ApiResponse(success=True, message="Vehicles retrieved successfully", data=vehicles)


@router.post("/vehicles", response_model=ApiResponse, summary="Register a vehicle")
def register_vehicle(body: VehicleCreate,
                     user: AuthenticatedUser = Depends(get_current_user),
                     db: Session = Depends(get_db)):
    vehicle = vehicle_service.add_vehicle(
        db, user,
        make=body.make,
        license_plate=body.license_plate,
        model=body.model,
        year=body.year,
        color=body.color,
    )
    return ApiResponse(success=True, message="Vehicle added successfully",
                       data={"vehicleId": vehicle.vehicle_id})


@router.delete("/vehicles/{vehicle_id}", response_model=ApiResponse, summary="Remove a vehicle")
def remove_vehicle(vehicle_id: str,
                   user: AuthenticatedUser = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    vehicle_service.remove_vehicle(db, user, vehicle_id)
    return ApiResponse(success=True, message="Vehicle removed successfully")
