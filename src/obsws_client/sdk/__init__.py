"""Typed verb layer over the request primitive.

Usage:
    async with ObsWebSocketClient(config) as client:
        scenes = await client.scenes.list()
        await client.scenes.set_current_program(scenes.scenes[0].scene_name)
        volume = await client.inputs.get_volume("Mic/Aux")
"""

from .api import GeneralAPI, InputAPI, OutputAPI, SceneAPI, SourceAPI
from .types import (
    InputBasicInfo,
    InputSettings,
    InputVolume,
    ObsModel,
    ObsStats,
    ObsVersion,
    RecordingStatus,
    SceneBasicInfo,
    SceneList,
    StreamingService,
    VirtualCamStatus,
)

__all__ = [
    # APIs
    "GeneralAPI",
    "SceneAPI",
    "InputAPI",
    "OutputAPI",
    "SourceAPI",
    # Types
    "ObsModel",
    "ObsVersion",
    "ObsStats",
    "SceneBasicInfo",
    "SceneList",
    "InputBasicInfo",
    "InputSettings",
    "InputVolume",
    "RecordingStatus",
    "VirtualCamStatus",
    "StreamingService",
]
