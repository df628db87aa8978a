"""Node and tree schemas."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

from ..models.node import NodeType


def _split_languages(v):
    if v is None:
        return []
    if isinstance(v, str):
        return [code.strip() for code in v.split(",") if code.strip()]
    return list(v)


class NodeBase(BaseModel):
    name: str
    type: NodeType = NodeType.FOLDER
    languages: List[str] = []

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator('languages', mode='before')
    @classmethod
    def split_languages(cls, v):
        return _split_languages(v)


class NodeCreate(NodeBase):
    """Schema for creating a node. ``pid=0`` creates a top-level node."""
    pid: int = Field(default=0, ge=0)
    sorting: int = 0


class NodeUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[NodeType] = None
    languages: Optional[List[str]] = None
    sorting: Optional[int] = None

    @field_validator('languages', mode='before')
    @classmethod
    def split_languages(cls, v):
        if v is None:
            return None
        return _split_languages(v)


class NodeResponse(NodeBase):
    id: int
    pid: int
    sorting: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NodeCopyRequest(BaseModel):
    """Copy a node after (mode=1) or into (mode=2) the target ``pid``."""
    pid: int = Field(ge=0)
    mode: int = Field(default=2, ge=1, le=2)
    with_children: bool = False


class NodeMoveRequest(BaseModel):
    """Paste a cut node after (mode=1) or into (mode=2) the target ``pid``."""
    pid: int = Field(ge=0)
    mode: int = Field(default=2, ge=1, le=2)


class NodeLabel(BaseModel):
    """Display label of a tree row: icon, name, select link and language names."""
    icon: str
    name: str
    link: str
    languages: List[str] = []


class ButtonStates(BaseModel):
    """Active flags per row button. ``None`` means the button is not rendered."""
    edit: bool
    edit_header: bool
    copy: Optional[bool] = None
    copy_children: Optional[bool] = None
    delete: bool
    paste_after: Optional[bool] = None
    paste_into: Optional[bool] = None


class TreeNode(BaseModel):
    """Schema for tree navigation."""
    id: int
    pid: int
    name: str
    type: NodeType
    label: NodeLabel
    buttons: ButtonStates
    children: List['TreeNode'] = []


class SelectionRequest(BaseModel):
    """Bulk "current working id set"."""
    ids: List[int]


class SelectionResponse(BaseModel):
    ids: List[int]


class BulkDeleteResponse(BaseModel):
    deleted: List[int]
