from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from planelog.core.database import Base


class PlaneRecord(Base):
    """
    A plane sighting submitted by a user.

    owner_email is a by-value reference to users.email, not a foreign key:
    records can outlive their owner.
    """
    __tablename__ = "planes"

    id = Column(Integer, primary_key=True, index=True)
    airport = Column(String, index=True, nullable=False)
    airline = Column(String, nullable=False)
    plane_model = Column(String, nullable=False)
    registration = Column(String, nullable=False)
    arrival_date = Column(DateTime(timezone=True), nullable=False)
    departure_date = Column(DateTime(timezone=True), nullable=False)
    plane_image = Column(String, nullable=False, default="")
    owner_email = Column(String, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
