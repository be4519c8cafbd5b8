"""Closed set of inbound messages and browser lifecycle signals."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _Message(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class SettingsPayload(BaseModel):
    """Partial settings update; omitted fields keep their stored value."""

    trackingEnabled: Optional[bool] = None
    excludedSites: Optional[list[str]] = None
    userCategories: Optional[dict[str, list[str]]] = None
    privacyMode: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


# -------- commands and queries --------


class PauseTracking(_Message):
    type: Literal["pauseTracking"] = "pauseTracking"


class ResumeTracking(_Message):
    type: Literal["resumeTracking"] = "resumeTracking"


class GetStatus(_Message):
    type: Literal["getStatus"] = "getStatus"


class GetTodayStats(_Message):
    type: Literal["getTodayStats"] = "getTodayStats"


class GetSessionData(_Message):
    type: Literal["GET_SESSION_DATA"] = "GET_SESSION_DATA"


class GetAnalytics(_Message):
    type: Literal["GET_ANALYTICS"] = "GET_ANALYTICS"
    timeframe: str = "7d"


class Engagement(_Message):
    type: Literal["engagement"] = "engagement"
    data: dict[str, Any] = Field(default_factory=dict)
    url: str = ""
    title: str = ""


class ContentAnalysis(_Message):
    type: Literal["CONTENT_ANALYSIS"] = "CONTENT_ANALYSIS"
    content: str = ""
    title: str = ""
    url: str = ""


class PageText(_Message):
    type: Literal["dumpText"] = "dumpText"
    text: str = ""
    url: str = ""
    title: str = ""


class UpdateSettings(_Message):
    type: Literal["UPDATE_SETTINGS"] = "UPDATE_SETTINGS"
    settings: SettingsPayload


class ExportData(_Message):
    type: Literal["EXPORT_DATA"] = "EXPORT_DATA"


class ResetSession(_Message):
    type: Literal["RESET_SESSION"] = "RESET_SESSION"


# -------- browser lifecycle signals --------


class TabActivated(_Message):
    type: Literal["tabActivated"] = "tabActivated"
    url: str = ""
    title: str = ""
    tabId: Optional[int] = None


class TabUpdated(_Message):
    """A tab finished (or started) loading; only the active tab counts."""

    type: Literal["tabUpdated"] = "tabUpdated"
    url: str = ""
    title: str = ""
    status: str = "complete"
    tabId: Optional[int] = None
    active: bool = True


class WindowFocusChanged(_Message):
    type: Literal["windowFocusChanged"] = "windowFocusChanged"
    focused: bool
    url: Optional[str] = None
    title: str = ""
    tabId: Optional[int] = None


class IdleStateChanged(_Message):
    type: Literal["idleStateChanged"] = "idleStateChanged"
    state: Literal["active", "idle", "locked"]


Command = Union[
    PauseTracking,
    ResumeTracking,
    GetStatus,
    GetTodayStats,
    GetSessionData,
    GetAnalytics,
    Engagement,
    ContentAnalysis,
    PageText,
    UpdateSettings,
    ExportData,
    ResetSession,
]

Signal = Union[TabActivated, TabUpdated, WindowFocusChanged, IdleStateChanged]

InboundCommand = Annotated[Command, Field(discriminator="type")]
BrowserSignal = Annotated[Signal, Field(discriminator="type")]

_command_adapter: TypeAdapter[Any] = TypeAdapter(InboundCommand)
_signal_adapter: TypeAdapter[Any] = TypeAdapter(BrowserSignal)


def parse_command(data: Any) -> Command:
    """Validate a raw ``{"type": ...}`` mapping into its message class."""
    return _command_adapter.validate_python(data)


def parse_signal(data: Any) -> Signal:
    return _signal_adapter.validate_python(data)
