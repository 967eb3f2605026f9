from fastapi import APIRouter, Depends, UploadFile, File as FastAPIFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from planelog.core.database import get_db
from planelog.core.errors import NotFound, ValidationError
from planelog.api.dependencies import get_current_email
from planelog.api.schemas import MessageResponse, ProfileImageResponse, ProfileResponse
from planelog.services.credential_store import CredentialStore
from planelog.services.plane_service import plane_service
from planelog.storage.local_storage import storage

router = APIRouter(tags=["profile"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db)
):
    """Get the caller's profile"""
    user = CredentialStore(db).find_by_email(email)
    if user is None:
        raise NotFound("User not found")
    return ProfileResponse(
        username=user.username,
        profile_image=user.profile_image,
        number_of_planes=user.number_of_planes,
    )


@router.post("/upload-profile-image", response_model=ProfileImageResponse)
async def upload_profile_image(
    profile_image: UploadFile | None = FastAPIFile(None, alias="profileImage"),
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db)
):
    """Store a new profile image and point the caller's profile at it"""
    if profile_image is None or not profile_image.filename:
        raise ValidationError("No file uploaded")

    store = CredentialStore(db)
    user = store.find_by_email(email)
    if user is None:
        raise NotFound("User not found")
    previous_image = user.profile_image

    path = await storage.save_file(profile_image)
    try:
        updated = store.update_fields(email, profile_image=path)
    except SQLAlchemyError:
        # The profile still points at the old image; drop the new file
        storage.delete_file(path)
        raise
    if not updated:
        # Account was deleted while the upload was being written
        storage.delete_file(path)
        raise NotFound("User not found")
    if previous_image:
        storage.delete_file(previous_image)
    return ProfileImageResponse(message="Profile image uploaded", profile_image=path)


@router.delete("/delete-account", response_model=MessageResponse)
async def delete_account(
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db)
):
    """Delete the caller's account and every plane record they submitted"""
    plane_service.delete_account(db, email)
    return MessageResponse(message="Account deleted")
