"""Protocol data models for sway-easyshot using Pydantic."""

from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EXECUTE_COMMAND = "execute"


class Icons(BaseModel):
    """Status-bar glyphs, keyed on the wire by their PascalCase names."""

    model_config = ConfigDict(populate_by_name=True)

    idle: str = Field(default="󰕧", alias="Idle")
    recording: str = Field(default="󰑊", alias="Recording")
    paused: str = Field(default="󰏤", alias="Paused")
    obs_recording: str = Field(default="󰑊", alias="ObsRecording")
    obs_paused: str = Field(default="󰏤", alias="ObsPaused")
    countdown: str = Field(default="⏱", alias="Countdown")

    def merged(self, overrides: Mapping[str, Any]) -> "Icons":
        """Return a copy where every string-valued override replaces its glyph.

        Keys are the wire names (``Idle``, ``Recording`` ...). Missing keys
        and non-string values keep the current glyph.
        """
        updates = {}
        for name, field in type(self).model_fields.items():
            value = overrides.get(field.alias or name)
            if isinstance(value, str):
                updates[name] = value
        return self.model_copy(update=updates)


class State(BaseModel):
    """Snapshot of the daemon's recording/OBS/countdown status."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    recording: bool = False
    paused: bool = False
    recording_file: str = ""
    recording_pid: int = Field(default=0, alias="recordingPID")
    recording_start_time: datetime | None = None
    obs_recording: bool = False
    obs_paused: bool = False
    countdown_remaining: int = 0
    icons: Icons = Field(default_factory=Icons)


class WaybarStatus(BaseModel):
    """Waybar custom-module payload derived from State."""

    model_config = ConfigDict(populate_by_name=True)

    text: str
    tooltip: str
    css_class: str = Field(alias="class")
    alt: str

    @classmethod
    def idle(cls, icons: Icons) -> "WaybarStatus":
        return cls(
            text=icons.idle,
            tooltip="Ready for screenshot/recording",
            css_class="idle",
            alt="idle",
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class Request(BaseModel):
    """One client request; the protocol carries exactly one per connection."""

    command: str = EXECUTE_COMMAND
    action: str
    options: dict[str, Any] = Field(default_factory=dict)

    @field_validator("options", mode="before")
    @classmethod
    def default_options(cls, v: Any) -> Any:
        return {} if v is None else v


class Response(BaseModel):
    """Daemon reply.

    ``message`` is human-readable text, except for ``waybar-status`` where it
    carries the JSON-encoded WaybarStatus.
    """

    success: bool
    message: str = ""
    state: State | None = None
