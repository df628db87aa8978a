"""Navigator, breadcrumb, view policy and clipboard schemas."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, field_validator

from .node import TreeNode


class NavigatorStatus(str, Enum):
    UNSET = "unset"
    POSITIONED = "positioned"


class NavigatorStateResponse(BaseModel):
    status: NavigatorStatus
    current_node_id: int


class BreadcrumbEntry(BaseModel):
    """One breadcrumb item. The active (current) node has no link."""
    node_id: int
    label: str
    icon: str
    link: Optional[str] = None
    active: bool = False


class Breadcrumb(BaseModel):
    current_node_id: int
    entries: List[BreadcrumbEntry]
    # The rendered tree is limited to these roots while a node is selected.
    root_ids: List[int]


class TreeViewPolicyResponse(BaseModel):
    closed: bool
    not_copyable: bool
    not_editable: bool
    not_deletable: bool
    root_ids: Optional[List[int]] = None
    root_paste: bool
    switch_to_edit: bool


class NodeViewResponse(BaseModel):
    """Result of the load step: navigator state, breadcrumb, policy and tree."""
    state: NavigatorStateResponse
    breadcrumb: Optional[Breadcrumb] = None
    policy: TreeViewPolicyResponse
    tree: List[TreeNode]


class ClipboardMode(str, Enum):
    CUT = "cut"
    CUT_ALL = "cutAll"


class ClipboardRef(BaseModel):
    """Transient cut selection used to disable paste buttons."""
    mode: ClipboardMode
    ids: List[int]

    @field_validator('ids', mode='before')
    @classmethod
    def coerce_ids(cls, v):
        if isinstance(v, (int, str)):
            v = [v]
        return [int(i) for i in v]
