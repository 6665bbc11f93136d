from pydantic import BaseModel
from typing import List, Literal, Optional


class MediaItem(BaseModel):
    id: str
    filename: str
    directory: str
    src: str
    previewSrc: str
    type: Literal["file"] = "file"


class MediaListResponse(BaseModel):
    items: List[MediaItem]
    offset: Optional[str] = None


class MediaListError(BaseModel):
    e: str


class DeleteMediaResponse(BaseModel):
    public_id: str


class UnauthorizedResponse(BaseModel):
    message: str = "sorry this user is not authorized"
