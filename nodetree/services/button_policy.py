"""Button availability for tree rows.

Pure functions: each takes the row and the collaborators it needs and
returns whether the button is active. ``None`` means the button is not
rendered at all. Producing icons and links is the client's job.
"""

from typing import Optional, Sequence

from ..models.node import NodeType
from ..schemas.navigation import ClipboardMode, ClipboardRef
from ..schemas.node import ButtonStates
from .permission_service import Permission, PermissionChecker, TreeViewPolicy
from .tree_walk import ROOT_PID


def is_circular_paste(row, clipboard: ClipboardRef, circular: bool) -> bool:
    """True if pasting *clipboard* at *row* would put a node inside itself."""
    if clipboard.mode == ClipboardMode.CUT:
        return circular or (bool(clipboard.ids) and clipboard.ids[0] == row.id)
    if clipboard.mode == ClipboardMode.CUT_ALL:
        return circular or row.id in clipboard.ids
    return False


def paste_buttons(
    row,
    clipboard: Optional[ClipboardRef],
    checker: PermissionChecker,
    root_ids: Sequence[int] = (),
    circular: bool = False,
) -> tuple:
    """Return ``(paste_after, paste_into)``. Both None without a clipboard.

    ``circular`` is set by the tree renderer when the row lies below a cut node.
    Paste-after is None for the synthetic root row (id 0).
    """
    if clipboard is None:
        return None, None

    disable_after = disable_into = is_circular_paste(row, clipboard, circular)
    can_manage_roots = checker.has_permission(Permission.ROOT)

    if not disable_into and row.type == NodeType.CONTENT.value:
        disable_into = True

    if not disable_into and row.type == NodeType.ROOT.value and not can_manage_roots:
        disable_into = True

    # Pasting after a top-level or mount root node creates a new root.
    if not disable_after and not can_manage_roots and (
        int(row.pid or 0) == ROOT_PID or row.id in root_ids
    ):
        disable_after = True

    paste_after = None if row.id <= 0 else not disable_after
    return paste_after, not disable_into


def edit_button(row, checker: PermissionChecker) -> bool:
    """Edit the node's content: only for non-folder rows, needs the content capability."""
    return row.type != NodeType.FOLDER.value and checker.has_permission(Permission.CONTENT)


def edit_header_button(checker: PermissionChecker) -> bool:
    return checker.has_permission(Permission.EDIT)


def copy_button(checker: PermissionChecker, policy: TreeViewPolicy) -> Optional[bool]:
    if policy.closed:
        return None
    return checker.has_permission(Permission.CREATE)


def copy_children_button(
    row,
    checker: PermissionChecker,
    policy: TreeViewPolicy,
    child_count: int,
) -> Optional[bool]:
    if policy.closed:
        return None
    active = row.type == NodeType.FOLDER.value and checker.has_permission(Permission.CREATE)
    return active and child_count > 0


def delete_button(row, checker: PermissionChecker, root_ids: Sequence[int] = ()) -> bool:
    if checker.is_admin():
        return True

    if not checker.has_permission(Permission.DELETE):
        return False

    if row.id in root_ids or checker.is_root_node(row):
        return checker.has_permission(Permission.ROOT)

    return True


def button_states(
    row,
    checker: PermissionChecker,
    policy: TreeViewPolicy,
    child_count: int,
    clipboard: Optional[ClipboardRef] = None,
    root_ids: Sequence[int] = (),
    circular: bool = False,
) -> ButtonStates:
    """All button states of one row."""
    paste_after, paste_into = paste_buttons(row, clipboard, checker, root_ids, circular)
    return ButtonStates(
        edit=edit_button(row, checker),
        edit_header=edit_header_button(checker),
        copy=copy_button(checker, policy),
        copy_children=copy_children_button(row, checker, policy, child_count),
        delete=delete_button(row, checker, root_ids),
        paste_after=paste_after,
        paste_into=paste_into,
    )
