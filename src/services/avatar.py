"""Avatar storage on the local filesystem."""

import logging
import secrets
import time
from pathlib import Path
from typing import BinaryIO

from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.user import User
from src.services.exceptions import InvalidAvatar, UserNotFound
from src.services.store import store_guard

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
AVATAR_URL_PREFIX = "/uploads/avatars/"


class AvatarService:
    """Validates uploaded avatars, stores them and keeps avatar_url in sync."""

    def __init__(self, db: Session, upload_dir: str | None = None, max_bytes: int | None = None):
        settings = get_settings()
        self.db = db
        self.avatar_dir = Path(upload_dir or settings.upload_dir) / "avatars"
        self.max_bytes = max_bytes or settings.avatar_max_bytes

    def validate(self, content_type: str | None, size: int) -> None:
        if content_type not in ALLOWED_MIME_TYPES:
            raise InvalidAvatar("Invalid file type. Only JPEG, PNG, GIF, and WebP are allowed.")
        if size == 0:
            raise InvalidAvatar("No file uploaded")
        if size > self.max_bytes:
            raise InvalidAvatar(
                f"File size too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB."
            )

    def update_avatar(self, user_id: int, file_obj: BinaryIO, content_type: str | None) -> str:
        """Store a new avatar, replacing (and deleting) the previous file."""
        # Read one byte past the limit so oversize uploads are rejected
        data = file_obj.read(self.max_bytes + 1)
        self.validate(content_type, len(data))

        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise UserNotFound()

        filename = f"avatar-{int(time.time() * 1000)}-{secrets.token_hex(4)}"
        filename += ALLOWED_MIME_TYPES[content_type]
        self.avatar_dir.mkdir(parents=True, exist_ok=True)
        (self.avatar_dir / filename).write_bytes(data)

        old_url = user.avatar_url
        avatar_url = f"{AVATAR_URL_PREFIX}{filename}"
        with store_guard(self.db, "update_avatar"):
            user.avatar_url = avatar_url
            self.db.commit()

        if old_url:
            self._delete_file(old_url)

        logger.info(f"Avatar updated for user {user_id}")
        return avatar_url

    def delete_avatar(self, user_id: int) -> str | None:
        """Remove the user's avatar. Returns the removed URL, if any."""
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise UserNotFound()

        old_url = user.avatar_url
        if not old_url:
            return None

        with store_guard(self.db, "delete_avatar"):
            user.avatar_url = None
            self.db.commit()

        self._delete_file(old_url)
        return old_url

    def path_for(self, avatar_url: str) -> Path:
        # Only the basename is trusted
        return self.avatar_dir / Path(avatar_url.removeprefix(AVATAR_URL_PREFIX)).name

    def _delete_file(self, avatar_url: str) -> None:
        path = self.path_for(avatar_url)
        if path.exists():
            path.unlink()
            logger.debug(f"Deleted avatar file {path}")
