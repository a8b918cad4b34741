"""Supabase Storage bucket for scanned images."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from macroscan.services.scans import ImageStore
from macroscan.services.vision import detect_mime_type

_EXTENSIONS = {"image/jpeg": "jpg", "image/png": "png", "image/webp": "webp"}


@dataclass
class SupabaseImageStore(ImageStore):
    """Stores images in a Supabase Storage bucket keyed by scan id."""

    client: Client
    bucket: str

    def save(self, scan_id: UUID, image_bytes: bytes) -> str:
        """Upload an image and return its object path."""
        mime_type = detect_mime_type(image_bytes)
        path = f"scans/{scan_id}.{_EXTENSIONS.get(mime_type, 'jpg')}"
        self.client.storage.from_(self.bucket).upload(
            path, image_bytes, {"content-type": mime_type}
        )
        return path

    def delete(self, image_ref: str) -> None:
        """Remove an image object."""
        if image_ref:
            self.client.storage.from_(self.bucket).remove([image_ref])
