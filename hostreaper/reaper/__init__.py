"""Reconciliation core: inventory, state machine, executor and loop."""

from .executor import ActionExecutor
from .inventory import HostInventory
from .loop import Reaper
from .state_machine import expected_state, next_action

__all__ = [
    "ActionExecutor",
    "HostInventory",
    "Reaper",
    "expected_state",
    "next_action",
]
