from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from planelog.core.database import Base


class User(Base):
    """
    Registered user.

    Email is the identity used in tokens and as the owner reference on planes.
    Passwords are stored as bcrypt hashes only.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Unique constraint closes the race between the existence check and insert
    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    # Public URL path of the profile image, empty string when none
    profile_image = Column(String, nullable=False, default="")
    # Display hint only - recomputed periodically by the scheduler
    number_of_planes = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
