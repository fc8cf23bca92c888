"""Media model for imported images."""

from pydantic import Field

from .base import DBModel


class Media(DBModel):
    """Image registered in the content store."""

    alt: str = Field("", description="Alternative text")
    filename: str = Field(..., description="Stored file name")
    mime_type: str = Field("image/jpeg", description="MIME type")
    path: str = Field(..., description="Path of the stored file")
