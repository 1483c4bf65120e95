"""Service layer package.

Imports are lazy so `airlink.services.capacity_policy` can be used without
pulling in FastAPI-bound modules. Common symbols remain reachable from
`airlink.services` through `__getattr__`.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "CapacityPolicy": "airlink.services.capacity_policy",
    "Connection": "airlink.services.connection",
    "InviteNotifier": "airlink.services.invite_notifier",
    "MembershipManager": "airlink.services.membership",
    "RelayEngine": "airlink.services.relay",
    "SessionRegistry": "airlink.services.session_registry",
    "SessionSweeper": "airlink.services.sweeper",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> Any:  # PEP 562 lazy attribute access
    module = _EXPORTS.get(name)
    if module is None:
        raise AttributeError(name)
    return getattr(import_module(module), name)
