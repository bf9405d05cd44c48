from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from project_access.adapters.clock import SystemClock
from project_access.adapters.dev_events import InMemoryPubSub, LoggingEventBus
from project_access.adapters.identity_stub import StaticIdentityService
from project_access.adapters.memory import InMemoryAccessStore
from project_access.adapters.search_index import InMemoryInviteIndex
from project_access.adapters.sqlite.repos import (
    SQLiteInviteRepo,
    SQLiteMemberRepo,
    SQLiteProjectRepo,
)
from project_access.components.acceptance import InviteAcceptance
from project_access.components.events import EventPublisher, PublisherConfig
from project_access.components.invite import InviteManager
from project_access.domain.policy import PolicyEngine
from project_access.rules.models import AccessRules


@dataclass
class ServiceContext:
    invite_manager: InviteManager
    acceptance: InviteAcceptance
    publisher: EventPublisher
    policy: PolicyEngine
    projects: Any
    members: Any
    invites: Any
    identity: Any
    search_index: InMemoryInviteIndex
    event_bus: LoggingEventBus
    pubsub: InMemoryPubSub
    rules: AccessRules
    clock: Any = None
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def _wire(
        cls,
        projects: Any,
        members: Any,
        invites: Any,
        rules: AccessRules,
        identity: Any | None,
        clock: Any | None,
    ) -> ServiceContext:
        identity = identity or StaticIdentityService()
        clock = clock or SystemClock()
        policy = PolicyEngine(rules)

        event_bus = LoggingEventBus()
        pubsub = InMemoryPubSub()
        search_index = InMemoryInviteIndex()
        publisher = EventPublisher(
            {"bus": event_bus, "pubsub": pubsub, "index": search_index},
            PublisherConfig(
                max_attempts=rules.events.max_attempts,
                retry_delay_seconds=rules.events.retry_delay_seconds,
            ),
        )

        invite_manager = InviteManager(
            projects, members, invites, identity, policy, publisher, clock
        )
        acceptance = InviteAcceptance(
            projects, members, invites, identity, policy, publisher,
            search=search_index, time=clock,
        )

        return cls(
            invite_manager=invite_manager,
            acceptance=acceptance,
            publisher=publisher,
            policy=policy,
            projects=projects,
            members=members,
            invites=invites,
            identity=identity,
            search_index=search_index,
            event_bus=event_bus,
            pubsub=pubsub,
            rules=rules,
            clock=clock,
        )

    @classmethod
    def create(
        cls,
        db_path: str,
        rules: AccessRules,
        identity: Any | None = None,
        clock: Any | None = None,
        timeout: float = 5.0,
    ) -> ServiceContext:
        """Context backed by SQLite. Migrations must already be applied."""
        return cls._wire(
            SQLiteProjectRepo(db_path, timeout),
            SQLiteMemberRepo(db_path, timeout),
            SQLiteInviteRepo(db_path, timeout),
            rules,
            identity,
            clock,
        )

    @classmethod
    def in_memory(
        cls,
        rules: AccessRules,
        identity: Any | None = None,
        clock: Any | None = None,
    ) -> ServiceContext:
        store = InMemoryAccessStore()
        ctx = cls._wire(store.projects, store.members, store.invites, rules, identity, clock)
        ctx.extras["store"] = store
        return ctx
