from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    # JSON uses camelCase keys; python code uses snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              from_attributes=True)


class RegisterRequest(CamelModel):
    # Defaults let the service report empty fields as a 400 ValidationError
    username: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(CamelModel):
    email: str = ""
    password: str = ""


class RefreshRequest(CamelModel):
    token: Optional[str] = None


class MessageResponse(CamelModel):
    message: str


class RegisterResponse(CamelModel):
    message: str
    token: str
    refresh_token: str


class LoginResponse(RegisterResponse):
    username: str


class TokenResponse(CamelModel):
    token: str


class ProfileResponse(CamelModel):
    username: str
    profile_image: str
    number_of_planes: int


class ProfileImageResponse(CamelModel):
    message: str
    profile_image: str


class PlaneCreatedResponse(CamelModel):
    message: str
    plane_id: int


class PlaneResponse(CamelModel):
    id: int
    airport: str
    airline: str
    plane_model: str
    registration: str
    arrival_date: datetime
    departure_date: datetime
    plane_image: str
    owner_email: str
    username: str
    created_at: Optional[datetime]

    @field_serializer('arrival_date', 'departure_date', 'created_at')
    def serialize_dates(self, value: Optional[datetime], _info):
        return value.isoformat() if value else None


class HealthResponse(CamelModel):
    status: str
    database: str
    timestamp: datetime
    uptime: float
