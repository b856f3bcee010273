# app/schemas/vehicle.py
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional


class VehicleCreate(BaseModel):
    make: str = ""
    license_plate: str = ""
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class VehicleOut(BaseModel):
    vehicle_id: str
    make: str
    model: Optional[str]
    year: Optional[int]
    color: Optional[str]
    license_plate: str
    registered_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
