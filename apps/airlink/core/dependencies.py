"""Central dependency providers.

The relay's state (registry, groups, limits) is owned by one
``AirlinkServices`` container per application, built in ``create_app`` and
stored on ``app.state``. Handlers reach it through these providers, so tests
get a fresh, isolated relay per app and can still use
``app.dependency_overrides``.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends
from fastapi.requests import HTTPConnection

from airlink.core.settings import Settings
from airlink.services.capacity_policy import CapacityPolicy
from airlink.services.invite_notifier import InviteNotifier
from airlink.services.membership import MembershipManager
from airlink.services.relay import RelayEngine
from airlink.services.session_registry import SessionRegistry
from airlink.services.sweeper import SessionSweeper


@dataclass
class AirlinkServices:
    settings: Settings
    registry: SessionRegistry
    policy: CapacityPolicy
    membership: MembershipManager
    relay: RelayEngine
    notifier: InviteNotifier
    sweeper: SessionSweeper


def build_services(settings: Settings) -> AirlinkServices:
    registry = SessionRegistry(
        code_digits=settings.session_code_digits,
        max_attempts=settings.session_code_max_attempts,
        idle_ttl_seconds=settings.session_idle_ttl_seconds,
    )
    policy = CapacityPolicy(
        max_file_size_bytes=settings.max_file_size_bytes,
        max_files_per_session=settings.max_files_per_session,
    )
    membership = MembershipManager(registry, announce_departures=settings.announce_departures)
    return AirlinkServices(
        settings=settings,
        registry=registry,
        policy=policy,
        membership=membership,
        relay=RelayEngine(registry, membership, policy),
        notifier=InviteNotifier(registry, settings),
        sweeper=SessionSweeper(registry, interval_seconds=settings.session_sweep_interval_seconds),
    )


def get_services(conn: HTTPConnection) -> AirlinkServices:
    return conn.app.state.airlink


def get_session_registry(services: AirlinkServices = Depends(get_services)) -> SessionRegistry:
    return services.registry


def get_capacity_policy(services: AirlinkServices = Depends(get_services)) -> CapacityPolicy:
    return services.policy


def get_invite_notifier(services: AirlinkServices = Depends(get_services)) -> InviteNotifier:
    return services.notifier


__all__ = [
    "AirlinkServices",
    "build_services",
    "get_capacity_policy",
    "get_invite_notifier",
    "get_services",
    "get_session_registry",
]
