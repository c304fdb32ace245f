"""
MangaPlus Backend — ImageKit Upload API Schemas
=================================================

What:  Models for the ImageKit upload API response.
How:   Field aliases follow ImageKit's camelCase JSON keys; unknown keys
       (tags, thumbnailUrl, versionInfo, ...) are ignored.
"""

from typing import Optional

from pydantic import BaseModel, Field

from mangaplus.schemas.chapter import ImageEntry


class UploadResult(BaseModel):
    """
    Result of a single ImageKit upload.

    Example payload:
        {
            "fileId": "6673f3e1e4a5c1b2c3d4e5f6",
            "name": "0_Kq2bP1xZ.jpg",
            "url": "https://ik.imagekit.io/demo/MangaPlus/0_Kq2bP1xZ.jpg",
            "filePath": "/MangaPlus/0_Kq2bP1xZ.jpg",
            "height": 1600,
            "width": 1100
        }
    """
    file_id: Optional[str] = Field(default=None, alias="fileId")
    name: Optional[str] = None
    url: str
    file_path: Optional[str] = Field(default=None, alias="filePath")
    # Absent for non-image assets
    height: Optional[int] = None
    width: Optional[int] = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def to_image_entry(self) -> ImageEntry:
        return ImageEntry(url=self.url, height=self.height or 0, width=self.width or 0)
