"""Node API: the tree view (load step), node CRUD, copy / move, bulk selection.

Every route runs the request gate first; services re-check the specific
action they perform.
"""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.session import SessionContext, get_session_context
from ..database import get_db
from ..schemas.navigation import ClipboardMode, NodeViewResponse, TreeViewPolicyResponse
from ..schemas.node import (
    BulkDeleteResponse,
    NodeCopyRequest,
    NodeCreate,
    NodeMoveRequest,
    NodeResponse,
    NodeUpdate,
    SelectionRequest,
    SelectionResponse,
)
from ..services.access_service import AccessService
from ..services.navigation_service import NavigatorService, strip_select_param
from ..services.node_service import NodeService, language_options
from ..services.permission_service import Action, PermissionChecker
from .deps import get_checker, parse_clipboard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/nodes", tags=["nodes"])


# -- Tree view -------------------------------------------------------------

@router.get("/view", response_model=NodeViewResponse)
def get_view(
    request: Request,
    act: Optional[Action] = Query(None),
    record_id: Optional[int] = Query(None, alias="id"),
    clipboard_mode: Optional[ClipboardMode] = Query(None),
    clipboard_ids: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    """Load the tree view: select (``nn``), breadcrumb, permission gate, policy, tree."""
    navigator = NavigatorService(db, session, checker)

    selected = request.query_params.get(settings.navigation_param)
    if selected is not None:
        navigator.select(selected)
        return RedirectResponse(strip_select_param(str(request.url)), status_code=303)

    breadcrumb = navigator.breadcrumb()
    AccessService(checker, session).check_request(act, record_id)
    policy = checker.view_policy(record_id=record_id)

    service = NodeService(db, checker, session)
    tree = service.get_tree(
        policy,
        root_ids=breadcrumb.root_ids if breadcrumb else None,
        clipboard=parse_clipboard(clipboard_mode, clipboard_ids),
    )

    return NodeViewResponse(
        state=navigator.state(),
        breadcrumb=breadcrumb,
        policy=TreeViewPolicyResponse(
            closed=policy.closed,
            not_copyable=policy.not_copyable,
            not_editable=policy.not_editable,
            not_deletable=policy.not_deletable,
            root_ids=list(policy.root_ids) if policy.root_ids is not None else None,
            root_paste=policy.root_paste,
            switch_to_edit=policy.switch_to_edit,
        ),
        tree=tree,
    )


@router.get("/languages", response_model=Dict[str, str])
def get_languages():
    """Language options for the node ``languages`` field."""
    return language_options()


# -- Bulk working set -----------------------------------------------------

@router.get("/selection", response_model=SelectionResponse)
def get_selection(
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    AccessService(checker, session).scrub_selection(Action.EDIT_ALL)
    return SelectionResponse(ids=NodeService(db, checker, session).get_selection())


@router.put("/selection", response_model=SelectionResponse)
def set_selection(
    data: SelectionRequest,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    NodeService(db, checker, session).set_selection(data.ids)
    return SelectionResponse(ids=AccessService(checker, session).scrub_selection(Action.EDIT_ALL))


@router.post("/selection/delete", response_model=BulkDeleteResponse)
def delete_selection(
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    return BulkDeleteResponse(deleted=NodeService(db, checker, session).delete_selection())


# -- Node CRUD ---------------------------------------------------------------

@router.post("", response_model=NodeResponse, status_code=201)
def create_node(
    data: NodeCreate,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    AccessService(checker, session).check_request(Action.CREATE)
    return NodeService(db, checker, session).create_node(data)


@router.get("/{node_id}", response_model=NodeResponse)
def get_node(
    node_id: int,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    AccessService(checker, session).check_request(Action.SHOW, node_id)
    return NodeService(db, checker, session).get_node(node_id)


@router.put("/{node_id}", response_model=NodeResponse)
def update_node(
    node_id: int,
    data: NodeUpdate,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    AccessService(checker, session).check_request(Action.EDIT, node_id)
    return NodeService(db, checker, session).update_node(node_id, data)


@router.delete("/{node_id}", response_model=BulkDeleteResponse)
def delete_node(
    node_id: int,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    """Delete a node together with its subtree."""
    AccessService(checker, session).check_request(Action.DELETE, node_id)
    return BulkDeleteResponse(deleted=NodeService(db, checker, session).delete_node(node_id))


@router.post("/{node_id}/copy", response_model=NodeResponse, status_code=201)
def copy_node(
    node_id: int,
    data: NodeCopyRequest,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    AccessService(checker, session).check_request(Action.COPY, node_id)
    return NodeService(db, checker, session).copy_node(node_id, data)


@router.put("/{node_id}/move", response_model=NodeResponse)
def move_node(
    node_id: int,
    data: NodeMoveRequest,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    """Paste a cut node after (mode=1) or into (mode=2) the target."""
    AccessService(checker, session).check_request(Action.PASTE, node_id)
    return NodeService(db, checker, session).move_node(node_id, data)
