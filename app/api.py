"""HTTP route definitions for the service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status

from app.schemas import DeviceHostSettings
from storage.config_store import DEVICE_HOST_KEY, JsonConfigStore, build_default_store, read_device_host

logger = logging.getLogger(__name__)

router = APIRouter()


def get_store() -> JsonConfigStore:
    return build_default_store()


@router.get(
    "/settings/device-host",
    response_model=DeviceHostSettings,
    summary="Show the address of the storeroom device.",
)
async def get_device_host(
    store: JsonConfigStore = Depends(get_store),
) -> DeviceHostSettings:
    return DeviceHostSettings(host=read_device_host(store))


@router.put(
    "/settings/device-host",
    response_model=DeviceHostSettings,
    summary="Change the address of the storeroom device.",
)
async def put_device_host(
    payload: DeviceHostSettings,
    store: JsonConfigStore = Depends(get_store),
) -> DeviceHostSettings:
    store.set(DEVICE_HOST_KEY, payload.host)
    logger.info("Device host updated to %s", payload.host)
    return payload


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "Connect a voice front-end to /voice."}
