"""
Concurrent invite creation and responses against SQLite.

The pending-identity index and conditional status updates must hold when
two requests race on the same identity.
"""

import threading

from project_access.components.acceptance import RespondInviteInput
from project_access.components.invite import ALREADY_INVITED, CreateInvitesInput
from project_access.domain.entities import Actor
from project_access.domain.errors import Conflict

CUSTOMER = Actor(user_id=10, email="cust@example.com")
ALICE = Actor(user_id=100, email="alice@example.com")


def run_concurrently(*targets):
    barrier = threading.Barrier(len(targets))
    results = [None] * len(targets)
    errors = [None] * len(targets)

    def wrap(i, fn):
        barrier.wait()
        try:
            results[i] = fn()
        except Exception as e:  # collected for assertions
            errors[i] = e

    threads = [threading.Thread(target=wrap, args=(i, fn)) for i, fn in enumerate(targets)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results, errors


def test_same_email_raced_yields_one_pending_invite(test_ctx):
    def create(email):
        return lambda: test_ctx.invite_manager.create_invites(
            CreateInvitesInput(project_id=1, role="customer", actor=CUSTOMER, emails=(email,))
        )

    results, errors = run_concurrently(create("dave@external.com"), create("DAVE@external.com"))

    assert errors == [None, None]
    pending = test_ctx.invites.list_pending(1)
    assert len(pending) == 1

    created = [r for r in results if r.invites]
    lost = [r for r in results if not r.invites]
    assert len(created) == 1
    assert len(lost) == 1
    assert lost[0].failed[0].code == ALREADY_INVITED
    assert lost[0].outcome == "failed"
    # Only the winner announced an invite
    assert len(test_ctx.event_bus.events) == 1


def test_double_accept_has_one_winner(test_ctx):
    result = test_ctx.invite_manager.create_invites(
        CreateInvitesInput(project_id=1, role="customer", actor=CUSTOMER, user_ids=(100,))
    )
    invite_id = result.invites[0].id

    def accept():
        return test_ctx.acceptance.respond(
            RespondInviteInput(project_id=1, invite_id=invite_id, actor=ALICE, decision="accepted")
        )

    results, errors = run_concurrently(accept, accept)

    winners = [r for r in results if r is not None]
    conflicts = [e for e in errors if e is not None]
    assert len(winners) == 1
    assert len(conflicts) == 1
    assert isinstance(conflicts[0], Conflict)
    assert [m.user_id for m in test_ctx.members.list_active(1)].count(100) == 1
