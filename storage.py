"""
Local disk image storage

Uploads land in UPLOAD_DIR and are served back under /images.
"""
import os
import shutil
import time
from pathlib import Path

from dotenv import load_dotenv
from fastapi import UploadFile

from errors import ValidationError

load_dotenv()

UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", "upload/images"))
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:4000").rstrip("/")
FIELD_NAME = "product"


def save_upload(file: UploadFile) -> str:
    if not (file.content_type or "").startswith("image/"):
        raise ValidationError("Only image uploads are accepted")
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    ext = Path(file.filename or "").suffix
    filename = f"{FIELD_NAME}_{int(time.time() * 1000)}{ext}"
    with open(UPLOAD_DIR / filename, "wb") as out:
        shutil.copyfileobj(file.file, out)
    return filename


def image_url(filename: str) -> str:
    return f"{PUBLIC_BASE_URL}/images/{filename}"
