"""
HTTP-level tests: the report lifecycle as seen by a sender, its subject and a manager.
"""

import csv
import io

import pytest
import pytest_asyncio

from app.models.user import UserRole
from app.services import store

API = "/api/v1"


@pytest_asyncio.fixture
async def team(make_user):
    mgr = await make_user("mgr", UserRole.MANAGER)
    bob = await make_user("bob", manager_id=mgr.id, with_password=True)
    alice = await make_user("alice", manager_id=mgr.id)
    return mgr, bob, alice


async def _submit(client, headers, to_user_id, **fields):
    body = {
        "to_user_id": to_user_id,
        "fault_description": "Was short with a customer on the phone",
        "process_type": "Behavior",
        "order_number": "10042",
        **fields,
    }
    resp = await client.post(f"{API}/feedback/", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestAuth:
    @pytest.mark.asyncio
    async def test_login_and_me(self, client, team, password):
        resp = await client.post(f"{API}/auth/login", json={"username": "Bob", "password": password})
        assert resp.status_code == 200
        tokens = resp.json()

        me = await client.get(
            f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"}
        )
        assert me.json()["username"] == "bob"
        assert "password_hash" not in me.json()

    @pytest.mark.asyncio
    async def test_bad_credentials(self, client, team):
        resp = await client.post(f"{API}/auth/login", json={"username": "bob", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Incorrect username or password."

    @pytest.mark.asyncio
    async def test_register_then_pending(self, client, team):
        mgr = team[0]
        resp = await client.post(
            f"{API}/auth/register",
            json={"username": "dana", "password": "pw-123", "name": "Dana", "manager_id": mgr.id},
        )
        assert resp.status_code == 201
        assert resp.json()["is_approved"] is False

        login = await client.post(f"{API}/auth/login", json={"username": "dana", "password": "pw-123"})
        assert login.status_code == 401
        assert "pending approval" in login.json()["detail"]

    @pytest.mark.asyncio
    async def test_refresh(self, client, team, password):
        tokens = (
            await client.post(f"{API}/auth/login", json={"username": "bob", "password": password})
        ).json()

        resp = await client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 200

        wrong_type = await client.post(
            f"{API}/auth/refresh", json={"refresh_token": tokens["access_token"]}
        )
        assert wrong_type.status_code == 401


class TestReportLifecycle:
    @pytest.mark.asyncio
    async def test_submit_approve_and_analytics(self, client, team, auth_headers, db):
        mgr, bob, alice = team

        created = await _submit(client, auth_headers(bob), alice.id)
        assert created["approval_status"] == "Pending"
        assert created["resolution_status"] == "Open"

        # Pending reports are invisible to their subject
        resp = await client.get(f"{API}/feedback/", headers=auth_headers(alice))
        assert resp.json()["total"] == 0
        missing = await client.get(f"{API}/feedback/{created['id']}", headers=auth_headers(alice))
        assert missing.status_code == 404

        decision = await client.post(
            f"{API}/feedback/{created['id']}/decision",
            json={"decision": "APPROVE", "manager_notes": "Discuss tone"},
            headers=auth_headers(mgr),
        )
        assert decision.status_code == 200
        assert decision.json()["changed"] is True
        assert decision.json()["feedback"]["approval_status"] == "Approved"
        assert decision.json()["feedback"]["manager_notes"] == "Discuss tone"

        again = await client.post(
            f"{API}/feedback/{created['id']}/decision",
            json={"decision": "APPROVE"},
            headers=auth_headers(mgr),
        )
        assert again.json()["changed"] is False

        approvals = [
            log for log in await store.audit_logs.list(db) if log.action == "APPROVE_REPORT"
        ]
        assert len(approvals) == 1

        seen = (await client.get(f"{API}/feedback/", headers=auth_headers(alice))).json()
        assert seen["total"] == 1
        assert seen["items"][0]["from_user_name"] == "Anonymous"
        assert seen["items"][0]["from_user_id"] is None

        stats = (await client.get(f"{API}/analytics/", headers=auth_headers(alice))).json()
        assert stats["total_analyzed"] == 1
        assert stats["categories"]["behavioral_pct"] == "100.0"

    @pytest.mark.asyncio
    async def test_reject_needs_reason(self, client, team, auth_headers):
        mgr, bob, alice = team
        created = await _submit(client, auth_headers(bob), alice.id)

        resp = await client.post(
            f"{API}/feedback/{created['id']}/decision",
            json={"decision": "REJECT"},
            headers=auth_headers(mgr),
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_resolution_only_after_approval(self, client, team, auth_headers):
        mgr, bob, alice = team
        created = await _submit(client, auth_headers(bob), alice.id)
        url = f"{API}/feedback/{created['id']}/resolution"

        early = await client.patch(url, json={"resolution_status": "In Progress"}, headers=auth_headers(mgr))
        assert early.status_code == 409

        await client.post(
            f"{API}/feedback/{created['id']}/decision",
            json={"decision": "APPROVE"},
            headers=auth_headers(mgr),
        )
        closed = await client.patch(
            url, json={"resolution_status": "Closed/Resolved"}, headers=auth_headers(mgr)
        )
        assert closed.status_code == 200
        assert closed.json()["feedback"]["resolution_date"] is not None

    @pytest.mark.asyncio
    async def test_regular_user_cannot_triage(self, client, team, auth_headers):
        _, bob, alice = team
        created = await _submit(client, auth_headers(bob), alice.id)

        resp = await client.post(
            f"{API}/feedback/{created['id']}/decision",
            json={"decision": "APPROVE"},
            headers=auth_headers(alice),
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_self_report_is_refused(self, client, team, auth_headers):
        bob = team[1]
        resp = await client.post(
            f"{API}/feedback/",
            json={"to_user_id": bob.id, "fault_description": "x", "process_type": "Behavior"},
            headers=auth_headers(bob),
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_all_scope_requires_manager(self, client, team, auth_headers):
        mgr, bob, alice = team
        await _submit(client, auth_headers(bob), alice.id)

        denied = await client.get(f"{API}/feedback/?scope=all", headers=auth_headers(bob))
        assert denied.status_code == 403

        everything = await client.get(f"{API}/feedback/?scope=all", headers=auth_headers(mgr))
        assert everything.json()["total"] == 1
        assert everything.json()["items"][0]["from_user_name"] == "Bob"

    @pytest.mark.asyncio
    async def test_analysis_is_attached(self, client, team, auth_headers, ai_stub):
        mgr, bob, alice = team
        created = await _submit(client, auth_headers(bob), alice.id)

        resp = await client.post(
            f"{API}/feedback/{created['id']}/analysis", headers=auth_headers(mgr)
        )

        assert resp.status_code == 200
        assert resp.json()["ai_analysis"] == ai_stub.analyze.return_value
        ai_stub.analyze.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_csv_export(self, client, team, auth_headers):
        mgr, bob, alice = team
        await _submit(client, auth_headers(bob), alice.id)

        resp = await client.get(f"{API}/feedback/export?scope=all", headers=auth_headers(mgr))

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0][:4] == ["ID", "Date", "From", "To"]
        assert rows[1][2:5] == ["Bob", "Alice", "Behavior"]


class TestDirectoryAndAudit:
    @pytest.mark.asyncio
    async def test_audit_log_is_role_scoped(self, client, team, auth_headers, make_user, password):
        mgr, bob, alice = team
        admin = await make_user("root", UserRole.ADMIN)
        await client.post(f"{API}/auth/login", json={"username": "bob", "password": password})
        created = await _submit(client, auth_headers(bob), alice.id)
        await client.post(
            f"{API}/feedback/{created['id']}/decision",
            json={"decision": "APPROVE"},
            headers=auth_headers(mgr),
        )

        as_admin = (await client.get(f"{API}/audit-logs/", headers=auth_headers(admin))).json()
        as_mgr = (await client.get(f"{API}/audit-logs/", headers=auth_headers(mgr))).json()
        as_user = await client.get(f"{API}/audit-logs/", headers=auth_headers(bob))

        assert {"LOGIN", "SUBMIT_REPORT", "APPROVE_REPORT"} <= set(as_admin["actions"])
        assert "APPROVE_REPORT" not in as_mgr["actions"]
        assert as_user.status_code == 403

    @pytest.mark.asyncio
    async def test_manager_approves_and_deletes_user(self, client, team, auth_headers, make_user):
        mgr, bob, alice = team
        pending = await make_user("dana", is_approved=False)

        listing = (await client.get(f"{API}/users/", headers=auth_headers(mgr))).json()
        assert listing["pending"] == 1
        assert listing["items"][0]["id"] == pending.id

        approved = await client.post(f"{API}/users/{pending.id}/approve", headers=auth_headers(mgr))
        assert approved.json()["is_approved"] is True

        await _submit(client, auth_headers(bob), alice.id)
        deleted = await client.delete(f"{API}/users/{alice.id}", headers=auth_headers(mgr))
        assert deleted.status_code == 204

        left = (await client.get(f"{API}/feedback/?scope=all", headers=auth_headers(mgr))).json()
        assert left["total"] == 0

    @pytest.mark.asyncio
    async def test_hierarchy_and_team(self, client, team, auth_headers):
        mgr, bob, alice = team

        tree = (await client.get(f"{API}/users/hierarchy", headers=auth_headers(mgr))).json()
        assert tree["roots"][0]["user"]["id"] == mgr.id
        assert {n["user"]["id"] for n in tree["roots"][0]["reports"]} == {bob.id, alice.id}

        denied = await client.get(f"{API}/users/hierarchy", headers=auth_headers(bob))
        assert denied.status_code == 403

        mine = (await client.get(f"{API}/users/team", headers=auth_headers(bob))).json()
        assert mine["manager"]["id"] == mgr.id
        assert [p["id"] for p in mine["peers"]] == [alice.id]


class TestWorkspace:
    @pytest.mark.asyncio
    async def test_dashboard_counts_visible_reports(self, client, team, auth_headers):
        mgr, bob, alice = team
        await _submit(client, auth_headers(bob), alice.id, priority="High")

        mine = (await client.get(f"{API}/dashboard/", headers=auth_headers(bob))).json()
        theirs = (await client.get(f"{API}/dashboard/", headers=auth_headers(alice))).json()

        assert mine["stats"]["sent"] == 1
        assert mine["stats"]["pending_approval"] == 1
        assert theirs["stats"]["total"] == 0
        assert len(mine["weekly_volume"]) == 7

    @pytest.mark.asyncio
    async def test_notes_board(self, client, team, auth_headers):
        bob = team[1]
        headers = auth_headers(bob)
        first = (await client.post(f"{API}/notes/", json={"title": "a"}, headers=headers)).json()
        second = (await client.post(f"{API}/notes/", json={"title": "b"}, headers=headers)).json()

        board = await client.post(
            f"{API}/notes/reorder",
            json={"note_id": second["id"], "target_index": 0},
            headers=headers,
        )

        assert [n["id"] for n in board.json()["items"]] == [second["id"], first["id"]]

    @pytest.mark.asyncio
    async def test_announcements_are_manager_only(self, client, team, auth_headers):
        mgr, bob, _ = team
        body = {"title": "Holiday rota", "content": "Check the shared sheet", "is_important": True}

        denied = await client.post(f"{API}/announcements/", json=body, headers=auth_headers(bob))
        posted = await client.post(f"{API}/announcements/", json=body, headers=auth_headers(mgr))
        feed = (await client.get(f"{API}/announcements/", headers=auth_headers(bob))).json()

        assert denied.status_code == 403
        assert posted.status_code == 201
        assert feed["items"][0]["title"] == "Holiday rota"

    @pytest.mark.asyncio
    async def test_knowledge_base(self, client, team, auth_headers):
        mgr, bob, _ = team
        created = await client.post(
            f"{API}/articles/",
            json={"title": "Refund vs exchange", "category": "Returns", "content": "Use RTS when..."},
            headers=auth_headers(mgr),
        )
        article_id = created.json()["id"]

        edited = await client.patch(
            f"{API}/articles/{article_id}",
            json={"content": "Always check the carrier scan first."},
            headers=auth_headers(mgr),
        )
        found = (
            await client.get(f"{API}/articles/?search=carrier", headers=auth_headers(bob))
        ).json()
        denied = await client.delete(f"{API}/articles/{article_id}", headers=auth_headers(bob))

        assert edited.json()["title"] == "Refund vs exchange"
        assert found["categories"] == ["Returns"]
        assert [a["id"] for a in found["items"]] == [article_id]
        assert denied.status_code == 403

    @pytest.mark.asyncio
    async def test_refine_uses_assistant(self, client, team, auth_headers, ai_stub):
        resp = await client.post(
            f"{API}/ai/refine",
            json={"text": "he was rude", "category": "Behavior"},
            headers=auth_headers(team[1]),
        )

        assert resp.json()["text"] == ai_stub.refine.return_value

    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.json()["status"] == "ok"
