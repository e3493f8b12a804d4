"""
Unredirect latch.

Tracks whether the compositor's full-screen unredirect optimization is
suppressed. The compositor effect is only invoked on an actual transition,
so repeated applications of the same target state are free.
"""

from __future__ import annotations

import logging

from softdim.common.types import UnredirectPolicy, UnredirectState
from softdim.core.protocols import SurfaceLayer

logger = logging.getLogger(__name__)

__all__ = ["UnredirectGuard", "unredirectTarget_get"]


def unredirectTarget_get(policy: UnredirectPolicy, is_dimming: bool) -> UnredirectState:
    """
    Derive the latch target for a policy and dimming state.

    Args:
        policy: Unredirect policy.
        is_dimming: Whether overlays are currently darkening the display.

    Returns:
        Target latch state.
    """
    if policy is UnredirectPolicy.ALWAYS:
        return UnredirectState.SUPPRESSED
    if policy is UnredirectPolicy.NEVER:
        return UnredirectState.ALLOWED
    return UnredirectState.SUPPRESSED if is_dimming else UnredirectState.ALLOWED


class UnredirectGuard:
    """Two-state latch in front of the compositor unredirect switch."""

    def __init__(self, surface_layer: SurfaceLayer) -> None:
        self._surface_layer = surface_layer
        self._state: UnredirectState = UnredirectState.ALLOWED

    @property
    def state(self) -> UnredirectState:
        """Current latch state"""
        return self._state

    def policy_apply(self, policy: UnredirectPolicy | str, is_dimming: bool) -> UnredirectState:
        """
        Move the latch to the state the policy requires.

        Args:
            policy: Unredirect policy or its settings-store string.
            is_dimming: Whether overlays are currently darkening the display.

        Returns:
            Latch state after the call. An unknown policy is logged and
            leaves the latch unchanged.
        """
        try:
            parsed_policy = UnredirectPolicy.parse(policy)
        except ValueError:
            logger.error('Unexpected prevent-unredirect="%s"', policy)
            return self._state

        target = unredirectTarget_get(parsed_policy, is_dimming)
        if target is self._state:
            return self._state

        if target is UnredirectState.SUPPRESSED:
            logger.debug("Disabling unredirects, prevent-unredirect=%s", parsed_policy.value)
            self._surface_layer.unredirect_disable()
        else:
            logger.debug("Enabling unredirects, prevent-unredirect=%s", parsed_policy.value)
            self._surface_layer.unredirect_enable()
        self._state = target
        return self._state
