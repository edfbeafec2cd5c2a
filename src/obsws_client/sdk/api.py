"""Verb APIs.

Thin typed wrappers over ObsWebSocketClient.send, grouped by category the
way obs-websocket groups its requests. Each API holds a reference to the
client; errors from send (NotConnectedError, ProtocolError, ...) propagate
unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .types import (
    InputBasicInfo,
    InputSettings,
    InputVolume,
    ObsStats,
    ObsVersion,
    RecordingStatus,
    SceneList,
    StreamingService,
    VirtualCamStatus,
)

if TYPE_CHECKING:
    from ..client import ObsWebSocketClient


def _image_options(
    image_width: int | None,
    image_height: int | None,
    image_compression_quality: int | None,
) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if image_width is not None:
        options["imageWidth"] = image_width
    if image_height is not None:
        options["imageHeight"] = image_height
    if image_compression_quality is not None:
        options["imageCompressionQuality"] = image_compression_quality
    return options


@dataclass
class GeneralAPI:
    """General requests."""

    _client: ObsWebSocketClient

    async def get_version(self) -> ObsVersion:
        """Get plugin, protocol and OBS version information."""
        data = await self._client.send("GetVersion")
        return ObsVersion.model_validate(data or {})

    async def get_stats(self) -> ObsStats:
        """Get OBS and session statistics."""
        data = await self._client.send("GetStats")
        return ObsStats.model_validate(data or {})

    async def broadcast_custom_event(self, event_data: dict[str, Any]) -> None:
        """Send a CustomEvent to every client subscribed to general events."""
        await self._client.send("BroadcastCustomEvent", {"eventData": event_data})

    async def trigger_hotkey_by_name(
        self, hotkey_name: str, context_name: str | None = None
    ) -> None:
        """Trigger a hotkey by its unique name, e.g. "ReplayBuffer.Save"."""
        params: dict[str, Any] = {"hotkeyName": hotkey_name}
        if context_name is not None:
            params["contextName"] = context_name
        await self._client.send("TriggerHotkeyByName", params)


@dataclass
class SceneAPI:
    """Scene requests."""

    _client: ObsWebSocketClient

    async def list(self) -> SceneList:
        data = await self._client.send("GetSceneList")
        return SceneList.model_validate(data or {})

    async def get_current_program(self) -> str:
        """Name of the scene currently in program."""
        data = await self._client.send("GetCurrentProgramScene") or {}
        return data.get("currentProgramSceneName") or data.get("sceneName", "")

    async def set_current_program(self, scene_name: str) -> None:
        await self._client.send("SetCurrentProgramScene", {"sceneName": scene_name})


@dataclass
class InputAPI:
    """Input requests."""

    _client: ObsWebSocketClient

    async def list(self, input_kind: str | None = None) -> list[InputBasicInfo]:
        """List inputs, optionally restricted to one input kind."""
        params = {"inputKind": input_kind} if input_kind else None
        data = await self._client.send("GetInputList", params) or {}
        return [InputBasicInfo.model_validate(item) for item in data.get("inputs", [])]

    async def get_settings(self, input_name: str) -> InputSettings:
        data = await self._client.send("GetInputSettings", {"inputName": input_name}) or {}
        return InputSettings.model_validate({"inputName": input_name, **data})

    async def get_volume(self, input_name: str) -> InputVolume:
        data = await self._client.send("GetInputVolume", {"inputName": input_name}) or {}
        return InputVolume.model_validate({"inputName": input_name, **data})

    async def set_volume(self, input_name: str, volume: float, db: bool = False) -> None:
        """Set an input's volume.

        Args:
            input_name: Input to change
            volume: 0.0-20.0 as a multiplier, or -100.0-26.0 in decibels
            db: Interpret volume as decibels
        """
        key = "inputVolumeDb" if db else "inputVolumeMul"
        await self._client.send("SetInputVolume", {"inputName": input_name, key: volume})


@dataclass
class OutputAPI:
    """Record, virtual camera and stream requests."""

    _client: ObsWebSocketClient

    async def get_record_status(self) -> RecordingStatus:
        data = await self._client.send("GetRecordStatus")
        return RecordingStatus.model_validate(data or {})

    async def start_record(self) -> None:
        await self._client.send("StartRecord")

    async def stop_record(self) -> str:
        """Stop recording and return the path of the recorded file."""
        data = await self._client.send("StopRecord") or {}
        return data.get("outputPath", "")

    async def get_virtual_cam_status(self) -> VirtualCamStatus:
        data = await self._client.send("GetVirtualCamStatus")
        return VirtualCamStatus.model_validate(data or {})

    async def get_stream_service_settings(self) -> StreamingService:
        data = await self._client.send("GetStreamServiceSettings")
        return StreamingService.model_validate(data or {})


@dataclass
class SourceAPI:
    """Source requests."""

    _client: ObsWebSocketClient

    async def get_screenshot(
        self,
        source_name: str,
        image_format: str = "png",
        image_width: int | None = None,
        image_height: int | None = None,
        image_compression_quality: int | None = None,
    ) -> str:
        """Capture a source and return it as a base64 data URI."""
        params: dict[str, Any] = {"sourceName": source_name, "imageFormat": image_format}
        params.update(_image_options(image_width, image_height, image_compression_quality))
        data = await self._client.send("GetSourceScreenshot", params) or {}
        return data.get("imageData", "")

    async def save_screenshot(
        self,
        source_name: str,
        image_file_path: str,
        image_format: str = "png",
        image_width: int | None = None,
        image_height: int | None = None,
        image_compression_quality: int | None = None,
    ) -> None:
        """Capture a source and save it to a file on the OBS host."""
        params: dict[str, Any] = {
            "sourceName": source_name,
            "imageFormat": image_format,
            "imageFilePath": image_file_path,
        }
        params.update(_image_options(image_width, image_height, image_compression_quality))
        await self._client.send("SaveSourceScreenshot", params)
