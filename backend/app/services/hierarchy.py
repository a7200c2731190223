"""
Org tree reconstruction from the flat user list.

Subordinate sets come from a single pass over ``manager_id``; chains are never
walked upward, and tree expansion tracks visited ids, so dangling or cyclic
references cannot loop or duplicate anyone.
"""

import logging
from collections.abc import Iterable

from app.models.user import UserRole
from app.schemas.hierarchy import (
    HierarchyNode,
    HierarchyResponse,
    TeamViewResponse,
    UserSummary,
)
from app.schemas.user import UserRecord

logger = logging.getLogger(__name__)


def active_users(users: Iterable[UserRecord]) -> list[UserRecord]:
    return [u for u in users if u.is_approved]


def subordinate_map(users: list[UserRecord]) -> dict[str, list[UserRecord]]:
    """Direct reports per manager id, ignoring self and dangling references."""
    ids = {u.id for u in users}
    subs: dict[str, list[UserRecord]] = {u.id: [] for u in users}
    for user in users:
        manager_id = user.manager_id
        if manager_id and manager_id != user.id and manager_id in ids:
            subs[manager_id].append(user)
    return subs


def _has_resolvable_manager(user: UserRecord, ids: set[str]) -> bool:
    return bool(user.manager_id) and user.manager_id != user.id and user.manager_id in ids


def is_root(user: UserRecord, ids: set[str], subs: dict[str, list[UserRecord]]) -> bool:
    """Heads of the forest, plus anyone whose manager is gone or inactive."""
    if user.manager_id:
        return not _has_resolvable_manager(user, ids)
    return user.role != UserRole.USER or bool(subs.get(user.id))


def is_floating(user: UserRecord, subs: dict[str, list[UserRecord]]) -> bool:
    return user.role == UserRole.USER and not user.manager_id and not subs.get(user.id)


def _summary(user: UserRecord) -> UserSummary:
    return UserSummary.model_validate(user)


def _expand(
    user: UserRecord, subs: dict[str, list[UserRecord]], visited: set[str]
) -> HierarchyNode:
    visited.add(user.id)
    reports = []
    for report in subs.get(user.id, []):
        if report.id in visited:
            continue
        reports.append(_expand(report, subs, visited))
    return HierarchyNode(user=_summary(user), reports=reports)


def build_hierarchy(users: Iterable[UserRecord]) -> HierarchyResponse:
    """Full org forest, as shown to managers and admins."""
    active = active_users(users)
    ids = {u.id for u in active}
    subs = subordinate_map(active)

    visited: set[str] = set()
    roots = [
        _expand(user, subs, visited)
        for user in active
        if is_root(user, ids, subs) and user.id not in visited
    ]
    floating = [u for u in active if u.id not in visited and is_floating(u, subs)]
    placed = visited | {u.id for u in floating}

    detached = [u for u in active if u.id not in placed]
    if detached:
        logger.warning(
            "%d active user(s) are only reachable through a manager_id cycle: %s",
            len(detached),
            ", ".join(u.username for u in detached),
        )

    return HierarchyResponse(
        roots=roots,
        floating=[_summary(u) for u in floating],
        detached=[_summary(u) for u in detached],
    )


def team_view(viewer: UserRecord, users: Iterable[UserRecord]) -> TeamViewResponse:
    """Self, own manager and peers: what a regular user gets to see."""
    active = active_users(users)
    by_id = {u.id: u for u in active}

    manager = None
    if viewer.manager_id and viewer.manager_id != viewer.id:
        manager = by_id.get(viewer.manager_id)

    peers = []
    if viewer.manager_id:
        peers = [
            u for u in active if u.manager_id == viewer.manager_id and u.id != viewer.id
        ]

    return TeamViewResponse(
        me=_summary(viewer),
        manager=_summary(manager) if manager else None,
        peers=[_summary(u) for u in peers],
    )
