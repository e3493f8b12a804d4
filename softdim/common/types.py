"""Common types and data structures for softdim"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MonitorSelectionPolicy(Enum):
    """Which physical monitors receive an overlay"""
    ALL = "all"
    BUILT_IN = "built-in"
    EXTERNAL = "external"

    @classmethod
    def parse(cls, value: "MonitorSelectionPolicy | str") -> "MonitorSelectionPolicy":
        """
        Parse a settings-store string into a selection policy

        Raises:
            ValueError: If value names no known policy
        """
        if isinstance(value, cls):
            return value
        return cls(value)

    def namesRequired_check(self) -> bool:
        """Check if resolving this policy needs monitor names"""
        return self is not MonitorSelectionPolicy.ALL


class UnredirectPolicy(Enum):
    """When the compositor's unredirect optimization is suppressed"""
    ALWAYS = "always"
    WHEN_CORRECTING = "when-correcting"
    NEVER = "never"

    @classmethod
    def parse(cls, value: "UnredirectPolicy | str") -> "UnredirectPolicy":
        """
        Parse a settings-store string into an unredirect policy

        Raises:
            ValueError: If value names no known policy
        """
        if isinstance(value, cls):
            return value
        return cls(value)


class UnredirectState(Enum):
    """Two-state unredirect latch"""
    SUPPRESSED = "suppressed"  # Unredirect disabled, compositing forced
    ALLOWED = "allowed"        # Compositor may bypass for full-screen windows


@dataclass(frozen=True)
class MonitorGeometry:
    """Monitor rectangle in root-window coordinates"""
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class MonitorDescriptor:
    """One active monitor: logical index, resolved name and geometry"""
    index: int
    geometry: MonitorGeometry
    name: Optional[str] = None  # None until name resolution completes


@dataclass(frozen=True)
class MonitorConfigEntry:
    """One (monitor-name, connector-name) pair from the display configuration"""
    monitor_name: str
    connector_name: str
