"""
Monitor registry and selection-policy resolution.

The registry keeps the active monitor list and the index-to-name mapping
obtained from the asynchronous display-configuration query. Each topology
update starts a new generation: descriptors are rebuilt without names and a
fresh query is issued. Query results that arrive for an older generation are
dropped, so a quick double hotplug never applies names to the wrong layout.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from softdim.common.types import (
    MonitorConfigEntry,
    MonitorDescriptor,
    MonitorGeometry,
    MonitorSelectionPolicy,
)
from softdim.core.protocols import DisplayConfigProvider, TopologyProvider

logger = logging.getLogger(__name__)

__all__ = ["MonitorRegistry"]


class MonitorRegistry:
    """Holds monitor descriptors and resolves selection policies."""

    def __init__(
        self,
        topology: TopologyProvider,
        display_config: Optional[DisplayConfigProvider],
        names_onResolved: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Initialize registry.

        Args:
            topology: Connector-to-index lookup and primary index.
            display_config: Monitor-name source; None leaves names unresolved.
            names_onResolved: Called after names for the current generation apply.
        """
        self._topology = topology
        self._display_config = display_config
        self._names_onResolved = names_onResolved
        self._monitors: list[MonitorDescriptor] = []
        self._names: Optional[dict[int, str]] = None
        self._generation: int = 0

    @property
    def generation(self) -> int:
        """Topology generation counter"""
        return self._generation

    @property
    def monitors(self) -> list[MonitorDescriptor]:
        """Current descriptors in logical-index order"""
        return list(self._monitors)

    def namesResolved_check(self) -> bool:
        """Check whether names are available for the current topology"""
        return self._names is not None

    def namesResolvedCallback_set(self, callback: Optional[Callable[[], None]]) -> None:
        """Replace the names-resolved callback"""
        self._names_onResolved = callback

    def topology_update(self, geometries: Sequence[MonitorGeometry]) -> None:
        """
        Replace the monitor list and start name resolution.

        Args:
            geometries: Active monitor geometries in logical-index order.
        """
        self._generation += 1
        self._names = None
        self._monitors = [
            MonitorDescriptor(index=index, geometry=geometry)
            for index, geometry in enumerate(geometries)
        ]
        logger.debug(
            "topology_update(): generation=%s, monitors=%s",
            self._generation,
            len(self._monitors),
        )
        self.namesQuery_start()

    def namesQuery_start(self) -> None:
        """Issue the display-configuration query for the current generation."""
        if self._display_config is None:
            logger.debug("namesQuery_start(): no display-configuration provider")
            return

        generation = self._generation

        def _onReply(
            entries: Optional[list[MonitorConfigEntry]], error: Optional[Exception]
        ) -> None:
            if error is not None:
                logger.warning("Cannot get monitor configuration: %s", error)
                return
            self.names_apply(entries or [], generation)

        self._display_config.monitorConfig_query(_onReply)

    def names_apply(self, entries: Sequence[MonitorConfigEntry], generation: int) -> bool:
        """
        Apply resolved monitor names for a topology generation.

        Args:
            entries: (monitor-name, connector-name) pairs.
            generation: Generation the query was issued for.

        Returns:
            True if names were applied, False for a stale result.
        """
        if generation != self._generation:
            logger.debug(
                "names_apply(): dropping stale result for generation %s (current %s)",
                generation,
                self._generation,
            )
            return False

        names: dict[int, str] = {}
        for entry in entries:
            monitor_index = self._topology.monitorForConnector_get(entry.connector_name)
            logger.debug(
                'names_apply(): monitor="%s", connector="%s", index=%s',
                entry.monitor_name,
                entry.connector_name,
                monitor_index,
            )
            if 0 <= monitor_index < len(self._monitors):
                names[monitor_index] = entry.monitor_name

        self._names = names
        self._monitors = [
            MonitorDescriptor(index=descriptor.index, geometry=descriptor.geometry, name=names.get(descriptor.index))
            for descriptor in self._monitors
        ]
        if self._names_onResolved is not None:
            self._names_onResolved()
        return True

    def subset_resolve(
        self,
        policy: MonitorSelectionPolicy,
        builtin_name: Optional[str],
        builtinDefault_request: Optional[Callable[[str], None]] = None,
    ) -> Optional[list[MonitorDescriptor]]:
        """
        Resolve a selection policy to the monitors that get an overlay.

        Args:
            policy: Monitor selection policy.
            builtin_name: Stored built-in monitor name; empty or None when unset.
            builtinDefault_request: Called with the primary monitor's name when
                the built-in name is unset; the caller persists it and retries.

        Returns:
            Selected descriptors, or None when resolution must be deferred.

        Raises:
            ValueError: If policy is not a MonitorSelectionPolicy.
        """
        if not isinstance(policy, MonitorSelectionPolicy):
            raise ValueError(f"Unhandled monitor selection policy {policy!r}")

        if not policy.namesRequired_check():
            return list(self._monitors)

        if self._names is None:
            logger.debug("subset_resolve(): deferring, monitor names not resolved yet")
            return None

        if not builtin_name:
            primary_name = self._names.get(self._topology.primaryIndex_get())
            if primary_name is None:
                logger.debug("subset_resolve(): deferring, primary monitor has no name")
                return None
            logger.debug(
                'subset_resolve(): no built-in monitor, requesting "%s" and deferring',
                primary_name,
            )
            if builtinDefault_request is not None:
                builtinDefault_request(primary_name)
            return None

        if policy is MonitorSelectionPolicy.BUILT_IN:
            return [descriptor for descriptor in self._monitors if descriptor.name == builtin_name]
        return [descriptor for descriptor in self._monitors if descriptor.name != builtin_name]
