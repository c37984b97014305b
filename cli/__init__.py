"""Terminal front-end for running storeroom voice sessions."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# ``cli.app`` must stay the module, not the Typer instance, so tests can
# patch ``cli.app.DeviceClient`` and ``cli.app.build_default_store``.

__all__ = []
