"""Builds the display/spoken text and content tiles for each session turn."""

from __future__ import annotations

from typing import List

from app.schemas import ConfirmationPrompt, ContentTile, UserMessage, VoiceResponse
from models.records import SensorReading

TILE_IMAGE = "Images/weather.png"
FAN_LAUNCH_ARGUMENT = "open-fan"
DECLINE_LAUNCH_ARGUMENT = "cancel"
FALLBACK_TEXT = "Something went wrong while checking the storeroom."

# (title, unit suffix) in wire order.
_TILE_LAYOUT = (
    ("Celsius", "℃"),
    ("Fahrenheit", "℉"),
    ("Humidity", "%RH"),
)


def reading_tiles(reading: SensorReading) -> List[ContentTile]:
    return [
        ContentTile(title=title, text=f"{text}{unit}", image=TILE_IMAGE)
        for (title, unit), text in zip(_TILE_LAYOUT, reading.fields)
    ]


def loading_progress(condition: str) -> VoiceResponse:
    return VoiceResponse(
        message=UserMessage.same(f"Loading the storeroom's current {condition}...")
    )


def normal_reply(reading: SensorReading) -> VoiceResponse:
    return VoiceResponse(
        message=UserMessage(
            display="Storeroom status is normal",
            spoken="Storeroom temperature and humidity are normal",
        ),
        tiles=reading_tiles(reading),
    )


def device_message_reply(text: str) -> VoiceResponse:
    """Echo a message the device sent instead of a reading."""
    if not text.strip():
        text = FALLBACK_TEXT
    return VoiceResponse(
        message=UserMessage.same(text),
        tiles=[ContentTile(title="Error message", text=text, image=TILE_IMAGE)],
    )


def fan_prompt(threshold: float) -> ConfirmationPrompt:
    return ConfirmationPrompt(
        prompt=UserMessage.same(
            f"The temperature is above {threshold:g} degrees. Shall I open the fan?"
        ),
        reprompt=UserMessage.same(f"Above {threshold:g} degrees. Open the fan?"),
    )


def opening_fan_progress() -> VoiceResponse:
    return VoiceResponse(message=UserMessage.same("Opening the fan"))


def fan_opened_reply() -> VoiceResponse:
    return VoiceResponse(
        message=UserMessage.same("The fan is open, rest assured."),
        app_launch_argument=FAN_LAUNCH_ARGUMENT,
    )


def fan_failed_reply() -> VoiceResponse:
    return VoiceResponse(
        message=UserMessage.same("The fan seems to have a problem, please try again later."),
        app_launch_argument=FAN_LAUNCH_ARGUMENT,
    )


def declined_reply() -> VoiceResponse:
    return VoiceResponse(
        message=UserMessage.same("All right, leaving it as is."),
        app_launch_argument=DECLINE_LAUNCH_ARGUMENT,
    )


def failure_reply(reason: str) -> VoiceResponse:
    text = reason.strip() or FALLBACK_TEXT
    return VoiceResponse(message=UserMessage.same(text))


def launch_app_reply() -> VoiceResponse:
    return VoiceResponse(
        message=UserMessage.same("Launching the storeroom monitor"),
        app_launch_argument="",
    )
