"""Cloudinary-backed storage for posters, trailers and avatars."""

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from flask import current_app

from movie_catalog.config import (
    AVATAR_SIZE,
    CLOUD_API_KEY,
    CLOUD_API_SECRET,
    CLOUD_NAME,
    POSTER_HEIGHT,
    POSTER_WIDTH,
    RESPONSIVE_MAX_IMAGES,
    RESPONSIVE_MAX_WIDTH,
)
from movie_catalog.errors import MediaOperationFailed
from movie_catalog.logger import logger


class MediaStore:
    """Thin wrapper over the cloudinary uploader returning plain descriptors."""

    def __init__(self, cloud_name: str | None = CLOUD_NAME, api_key: str | None = CLOUD_API_KEY, api_secret: str | None = CLOUD_API_SECRET):
        if cloud_name:
            cloudinary.config(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True)

    def upload_poster(self, file):
        """
        Upload a poster resized to the catalog format with responsive variants.

        Args:
            file (FileStorage): Uploaded image.

        Returns:
            dict: ``{"url", "public_id", "responsive"}``.
        """
        result = self._upload(
            file,
            transformation={"width": POSTER_WIDTH, "height": POSTER_HEIGHT},
            responsive_breakpoints={
                "create_derived": True,
                "max_width": RESPONSIVE_MAX_WIDTH,
                "max_images": RESPONSIVE_MAX_IMAGES,
            },
        )
        breakpoints = []
        for entry in result.get("responsive_breakpoints") or []:
            breakpoints.extend(entry.get("breakpoints") or [])
        responsive = [item["secure_url"] for item in breakpoints if item.get("secure_url")]
        return {"url": result["secure_url"], "public_id": result["public_id"], "responsive": responsive}

    def upload_trailer(self, file):
        result = self._upload(file, resource_type="video")
        return {"url": result["secure_url"], "public_id": result["public_id"]}

    def upload_avatar(self, file):
        result = self._upload(file, gravity="face", height=AVATAR_SIZE, width=AVATAR_SIZE, crop="thumb")
        return {"url": result["secure_url"], "public_id": result["public_id"]}

    def destroy(self, public_id: str, resource_type: str = "image"):
        """
        Delete a remote asset.

        Args:
            public_id (str): Asset identifier returned at upload time.
            resource_type (str): ``"image"`` or ``"video"``.

        Returns:
            bool: True when the host confirmed the deletion.
        """
        try:
            result = cloudinary.uploader.destroy(public_id, resource_type=resource_type)
        except CloudinaryError as exc:
            logger.warning("Could not delete %s asset %s: %s", resource_type, public_id, exc)
            return False
        return result.get("result") == "ok"

    def _upload(self, file, **options):
        source = getattr(file, "stream", file)
        try:
            return cloudinary.uploader.upload(source, **options)
        except CloudinaryError as exc:
            raise MediaOperationFailed(f"Could not upload file: {exc}") from exc


def get_media_store() -> MediaStore:
    """Return the media store bound to the running Flask app."""
    return current_app.extensions["media_store"]
