"""SDK type definitions.

Typed views of obs-websocket response data. Field names are snake_case in
Python and camelCase on the wire. Unknown fields are kept (extra="allow") so
newer servers do not break parsing.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ObsModel(BaseModel):
    """Base for response models."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class ObsVersion(ObsModel):
    """GetVersion response."""

    obs_version: str = ""
    obs_web_socket_version: str = ""
    rpc_version: int = 0
    available_requests: list[str] = []
    supported_image_formats: list[str] = []
    platform: str = ""
    platform_description: str = ""


class ObsStats(ObsModel):
    """GetStats response."""

    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    available_disk_space: float = 0.0
    active_fps: float = 0.0
    average_frame_render_time: float = 0.0
    render_skipped_frames: int = 0
    render_total_frames: int = 0
    output_skipped_frames: int = 0
    output_total_frames: int = 0
    web_socket_session_incoming_messages: int = 0
    web_socket_session_outgoing_messages: int = 0


class SceneBasicInfo(ObsModel):
    """One entry of GetSceneList.scenes."""

    scene_name: str
    scene_index: int = 0
    scene_uuid: str | None = None


class SceneList(ObsModel):
    """GetSceneList response."""

    current_program_scene_name: str | None = None
    current_preview_scene_name: str | None = None
    scenes: list[SceneBasicInfo] = []


class InputBasicInfo(ObsModel):
    """One entry of GetInputList.inputs."""

    input_name: str
    input_kind: str = ""
    unversioned_input_kind: str | None = None
    input_uuid: str | None = None


class InputSettings(ObsModel):
    """GetInputSettings response."""

    input_name: str = ""
    input_kind: str = ""
    input_settings: dict[str, Any] = {}


class InputVolume(ObsModel):
    """GetInputVolume response."""

    input_name: str = ""
    input_volume_mul: float = 0.0
    input_volume_db: float = 0.0


class RecordingStatus(ObsModel):
    """GetRecordStatus response."""

    output_active: bool = False
    output_paused: bool = False
    output_timecode: str = ""
    output_duration: int = 0
    output_bytes: int = 0


class VirtualCamStatus(ObsModel):
    """GetVirtualCamStatus response."""

    output_active: bool = False


class StreamingService(ObsModel):
    """GetStreamServiceSettings response."""

    stream_service_type: str = ""
    stream_service_settings: dict[str, Any] = {}
