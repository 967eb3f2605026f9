import secrets
import time
from pathlib import Path
from fastapi import UploadFile
from planelog.core.config import settings


class LocalStorage:
    """
    Stores uploaded images on disk and hands out public URL paths.

    File contents are never inspected.
    """

    def __init__(self, upload_dir: str = settings.UPLOAD_DIR,
                 url_prefix: str = settings.UPLOADS_URL_PREFIX):
        self.upload_dir = Path(upload_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.url_prefix = "/" + url_prefix.strip("/")

    @staticmethod
    def generate_filename(original_filename: str | None) -> str:
        """High-resolution timestamp plus a random suffix, original extension kept"""
        file_ext = Path(original_filename or "").suffix
        return f"{time.time_ns()}-{secrets.token_hex(6)}{file_ext}"

    async def save_file(self, file: UploadFile) -> str:
        """Save an uploaded file and return its public path"""
        unique_filename = self.generate_filename(file.filename)
        file_path = self.upload_dir / unique_filename

        with open(file_path, "wb") as f:
            content = await file.read()
            f.write(content)

        return f"{self.url_prefix}/{unique_filename}"

    def get_file_path(self, public_path: str) -> Path:
        """Map a public path back to the file on disk"""
        # Only the final component is used so a stored path can't escape upload_dir
        return self.upload_dir / Path(public_path).name

    def file_exists(self, public_path: str) -> bool:
        """Check if a stored file is still on disk"""
        return self.get_file_path(public_path).exists()

    def delete_file(self, public_path: str) -> bool:
        """Delete a stored file. Returns False when it was already gone."""
        if not self.file_exists(public_path):
            return False
        self.get_file_path(public_path).unlink()
        return True


storage = LocalStorage()
