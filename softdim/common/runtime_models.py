"""Typed runtime models for daemon orchestration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from softdim.common.settings_store import SettingsStore
from softdim.core.controller import BrightnessController


@dataclass(frozen=True)
class DaemonComponents:
    """Collaborators wired together for one daemon run."""

    store: SettingsStore
    display_manager: Any
    surface_layer: Any
    display_config: Optional[Any]
    backlight: Optional[Any]
    controller: BrightnessController
