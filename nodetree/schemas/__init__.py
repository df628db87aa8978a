"""Pydantic schemas for API validation."""

from .node import (
    NodeCreate,
    NodeUpdate,
    NodeResponse,
    NodeCopyRequest,
    NodeMoveRequest,
    NodeLabel,
    ButtonStates,
    TreeNode,
    SelectionRequest,
    SelectionResponse,
    BulkDeleteResponse,
)
from .navigation import (
    NavigatorStatus,
    NavigatorStateResponse,
    BreadcrumbEntry,
    Breadcrumb,
    TreeViewPolicyResponse,
    NodeViewResponse,
    ClipboardMode,
    ClipboardRef,
)
from .picker import (
    PickerReloadRequest,
    PickerSelection,
    PickerReloadResponse,
)

__all__ = [
    "NodeCreate",
    "NodeUpdate",
    "NodeResponse",
    "NodeCopyRequest",
    "NodeMoveRequest",
    "NodeLabel",
    "ButtonStates",
    "TreeNode",
    "SelectionRequest",
    "SelectionResponse",
    "BulkDeleteResponse",
    "NavigatorStatus",
    "NavigatorStateResponse",
    "BreadcrumbEntry",
    "Breadcrumb",
    "TreeViewPolicyResponse",
    "NodeViewResponse",
    "ClipboardMode",
    "ClipboardRef",
    "PickerReloadRequest",
    "PickerSelection",
    "PickerReloadResponse",
]
