"""Business logic services."""

from .permission_service import Action, Permission, PermissionChecker, TreeViewPolicy
from .navigation_service import NavigatorService
from .node_service import NodeService
from .access_service import AccessService
from .picker_service import PickerService

__all__ = [
    "Action",
    "Permission",
    "PermissionChecker",
    "TreeViewPolicy",
    "NavigatorService",
    "NodeService",
    "AccessService",
    "PickerService",
]
