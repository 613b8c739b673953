from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    idle = "idle"
    running = "running"
    completed = "completed"
    failed = "failed"
    cancelled = "cancelled"


class HealthResponse(BaseModel):
    ok: bool = True
    service: str = "box_lproj_tm"
    version: str = "0.1.0"


class WorkspaceRequest(BaseModel):
    root: str = Field(..., description="*.lproj 所在目录（拖入的文件夹）")


class ResourceInfo(BaseModel):
    name: str
    key_count: int = 0
    languages: List[str] = []
    encoding: str = "utf-8"
    has_bom: bool = False
    missing_by_language: Dict[str, int] = {}


class WorkspaceInfoResponse(BaseModel):
    root: str
    config_path: Optional[str] = None
    source_locales: List[str] = []
    resources: List[ResourceInfo] = []


class RowItem(BaseModel):
    key: str
    source: str
    translation: Optional[str] = None
    missing: bool = False


class RowsResponse(BaseModel):
    resource: str
    language: str
    rows: List[RowItem] = []


class EntryResponse(BaseModel):
    key: str
    language: str
    text: str


class SetTranslationRequest(BaseModel):
    lang: str
    key: str
    value: str


class OkResponse(BaseModel):
    ok: bool = True
    message: str = ""


class SaveResponse(BaseModel):
    ok: bool = True
    path: str


class TaskProgress(BaseModel):
    total: int = 0
    done: int = 0


class TranslateResponse(BaseModel):
    ok: bool
    resource: str
    language: str
    status: TaskStatus
    total: int = 0
    translated: List[str] = []
    skipped: List[str] = []


class ProgressResponse(BaseModel):
    resource: str
    language: str
    status: TaskStatus = TaskStatus.idle
    progress: TaskProgress = TaskProgress()
    error: Optional[str] = None
