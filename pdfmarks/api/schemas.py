"""
API Pydantic models for the bookmark editor.

Request/response models used by the bookmark editor endpoints.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

NodeIdField = Union[int, float, str]


class BookmarkNodeModel(BaseModel):
    """Bookmark node in the JSON interchange shape"""

    id: NodeIdField
    title: str
    page: int
    children: List["BookmarkNodeModel"] = Field(default_factory=list)
    color: Optional[str] = None
    style: Optional[str] = None
    destX: Optional[float] = None
    destY: Optional[float] = None
    zoom: Optional[str] = None


BookmarkNodeModel.model_rebuild()


class SessionCreateRequest(BaseModel):
    """Request model for opening an editing session"""

    pdf_path: Optional[str] = Field(None, description="PDF the bookmarks belong to")
    extract_existing: bool = Field(
        True, description="Load the PDF's existing outline into the session"
    )


class SessionResponse(BaseModel):
    """Current state of an editing session"""

    session_id: str
    pdf_path: Optional[str] = None
    created_at: datetime
    bookmark_count: int
    can_undo: bool
    can_redo: bool
    bookmarks: List[BookmarkNodeModel]


class AddBookmarkRequest(BaseModel):
    """Request model for adding a bookmark"""

    title: str = Field(..., min_length=1)
    page: int = Field(..., ge=1, description="Target page (1-indexed)")
    parent_id: Optional[NodeIdField] = Field(None, description="Parent bookmark, None for top level")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("Title must not be blank")
        return v.strip()


class EditBookmarkRequest(BaseModel):
    """Request model for editing a bookmark; only fields sent are changed"""

    title: Optional[str] = None
    page: Optional[int] = Field(None, ge=1)
    color: Optional[str] = None
    style: Optional[str] = None
    destX: Optional[float] = None
    destY: Optional[float] = None
    zoom: Optional[str] = None

    def to_changes(self) -> Dict[str, Any]:
        """Map sent fields onto session edit keywords."""
        renames = {"destX": "dest_x", "destY": "dest_y"}
        return {
            renames.get(key, key): value
            for key, value in self.model_dump(exclude_unset=True).items()
        }


class MoveBookmarkRequest(BaseModel):
    """Request model for reordering siblings"""

    old_index: int = Field(..., ge=0)
    new_index: int = Field(..., ge=0)
    parent_id: Optional[NodeIdField] = None


class BatchRequest(BaseModel):
    """Request model for multi-select operations"""

    ids: List[NodeIdField] = Field(..., min_length=1)
    action: Literal["color", "style", "delete"]
    value: Optional[str] = Field(None, description="Color or style; empty clears it")


class BatchResponse(BaseModel):
    affected: int
    session: SessionResponse


class ImportRequest(BaseModel):
    """Request model for CSV/JSON imports"""

    content: str


class ImportResponse(BaseModel):
    imported: int
    session: SessionResponse


class SaveRequest(BaseModel):
    """Request model for writing the outline into the session's PDF"""

    output_path: str = Field(..., description="Where to save the bookmarked PDF")

    @field_validator("output_path")
    @classmethod
    def validate_output_path(cls, v):
        if not v.endswith(".pdf"):
            raise ValueError("Output must be a .pdf file")
        return v


class SaveResponse(BaseModel):
    output_path: str
    bookmark_count: int


class HealthResponse(BaseModel):
    """Health check response"""

    status: str
    timestamp: datetime
    version: str
    uptime: float
    system_info: Dict[str, Any]


class ErrorResponse(BaseModel):
    """Error response model"""

    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime


__all__ = [
    "AddBookmarkRequest",
    "BatchRequest",
    "BatchResponse",
    "BookmarkNodeModel",
    "EditBookmarkRequest",
    "ErrorResponse",
    "HealthResponse",
    "ImportRequest",
    "ImportResponse",
    "MoveBookmarkRequest",
    "SaveRequest",
    "SaveResponse",
    "SessionCreateRequest",
    "SessionResponse",
]
