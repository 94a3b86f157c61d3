"""Host retirement state machine.

One step per pass: ``active -> inactive -> removed -> purged``, and only
while the backing instance is gone. Live instances, purged hosts and
unknown states never produce an action.
"""

from __future__ import annotations

from types import MappingProxyType

from hostreaper.constants import Action, HostState
from hostreaper.types import InstanceStatus, is_gone

TRANSITIONS = MappingProxyType({
    HostState.ACTIVE: Action.DEACTIVATE,
    HostState.INACTIVE: Action.REMOVE,
    HostState.REMOVED: Action.PURGE,
})

RESULTING_STATE = MappingProxyType({
    Action.DEACTIVATE: HostState.INACTIVE,
    Action.REMOVE: HostState.REMOVED,
    Action.PURGE: HostState.PURGED,
})


def next_action(host_state: HostState | str, status: InstanceStatus) -> Action:
    if not is_gone(status):
        return Action.NONE
    try:
        state = HostState(host_state)
    except ValueError:
        return Action.NONE
    return TRANSITIONS.get(state, Action.NONE)


def expected_state(action: Action) -> HostState | None:
    """State the host should reach once ``action`` is accepted."""
    return RESULTING_STATE.get(action)
