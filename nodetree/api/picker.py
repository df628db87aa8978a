"""Node picker widget reload."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.picker import PickerReloadRequest, PickerReloadResponse
from ..services.permission_service import PermissionChecker
from ..services.picker_service import PickerService
from .deps import get_checker

router = APIRouter(prefix="/api/nodes/picker", tags=["picker"])


@router.post("/reload", response_model=PickerReloadResponse)
def reload_picker(
    data: PickerReloadRequest,
    db: Session = Depends(get_db),
    checker: PermissionChecker = Depends(get_checker),
):
    """Re-render the selection of a picker field for one record."""
    return PickerService(db, checker).reload(data)
