"""Node picker widget schemas."""

from typing import List, Optional

from pydantic import BaseModel


class PickerReloadRequest(BaseModel):
    table: str
    field: str
    id: int = 0
    # Tab-separated node ids currently selected in the widget
    value: str = ""
    act: Optional[str] = None


class PickerSelection(BaseModel):
    id: int
    label: str
    icon: str
    path: List[str]


class PickerReloadResponse(BaseModel):
    table: str
    field: str
    record_id: int
    value: List[int]
    selected: List[PickerSelection]
