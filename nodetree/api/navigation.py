"""Navigator API: current position in the tree and its breadcrumb."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.session import SessionContext, get_session_context
from ..database import get_db
from ..schemas.navigation import Breadcrumb, NavigatorStateResponse
from ..services.navigation_service import NavigatorService, strip_select_param
from ..services.permission_service import PermissionChecker
from .deps import get_checker

router = APIRouter(prefix="/api/navigation", tags=["navigation"])


@router.get("", response_model=NavigatorStateResponse)
def get_state(
    request: Request,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    """Navigator state. A ``nn`` parameter selects a node and redirects without it."""
    navigator = NavigatorService(db, session, checker)
    selected = request.query_params.get(settings.navigation_param)
    if selected is not None:
        navigator.select(selected)
        return RedirectResponse(strip_select_param(str(request.url)), status_code=303)
    return navigator.state()


@router.delete("", response_model=NavigatorStateResponse)
def reset_state(
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    navigator = NavigatorService(db, session, checker)
    navigator.reset()
    return navigator.state()


@router.get("/breadcrumb", response_model=Optional[Breadcrumb])
def get_breadcrumb(
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    checker: PermissionChecker = Depends(get_checker),
):
    """Root-first path to the current node, or null when nothing is selected."""
    return NavigatorService(db, session, checker).breadcrumb()
