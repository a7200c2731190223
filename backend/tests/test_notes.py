from datetime import datetime, timedelta, timezone

import pytest

from app.core.exceptions import ForbiddenError, NotFoundError
from app.models.note import NoteColor
from app.schemas.note import NoteRecord
from app.services.notes import NoteService, move, ordered

T0 = datetime(2026, 10, 1, tzinfo=timezone.utc)


def _note(note_id, order_index, minutes=0):
    return NoteRecord(
        id=note_id, user_id="u", order_index=order_index, timestamp=T0 + timedelta(minutes=minutes)
    )


class TestOrdering:
    def test_newest_first_among_equal_indices(self):
        notes = [_note("old", 0, 0), _note("new", 0, 5), _note("later", 1, 10)]
        assert [n.id for n in ordered(notes)] == ["new", "old", "later"]

    def test_move_renumbers_board(self):
        notes = [_note("a", 0), _note("b", 1), _note("c", 2)]

        moved = move(notes, "c", 0)

        assert [(n.id, n.order_index) for n in moved] == [("c", 0), ("a", 1), ("b", 2)]

    def test_move_past_the_end_clamps(self):
        notes = [_note("a", 0), _note("b", 1), _note("c", 2)]

        moved = move(notes, "a", 99)

        assert [n.id for n in moved] == ["b", "c", "a"]

    def test_move_unknown_note(self):
        with pytest.raises(NotFoundError):
            move([_note("a", 0)], "missing", 0)


class TestNoteService:
    @pytest.mark.asyncio
    async def test_create_appends_to_board(self, db, make_user):
        bob = await make_user("bob")

        first = await NoteService.create(db, bob, title="Call back", color=NoteColor.BLUE)
        second = await NoteService.create(db, bob, title="Refund #123")

        assert (first.order_index, second.order_index) == (0, 1)
        assert first.color == NoteColor.BLUE
        assert second.color in set(NoteColor)

    @pytest.mark.asyncio
    async def test_reorder_persists(self, db, make_user):
        bob = await make_user("bob")
        a = await NoteService.create(db, bob, title="a")
        b = await NoteService.create(db, bob, title="b")
        c = await NoteService.create(db, bob, title="c")

        await NoteService.reorder(db, bob, c.id, 0)
        board = await NoteService.list_notes(db, bob)

        assert [n.id for n in board.items] == [c.id, a.id, b.id]

    @pytest.mark.asyncio
    async def test_search_and_update(self, db, make_user):
        bob = await make_user("bob")
        note = await NoteService.create(db, bob, title="Escalation", content="Order 555")
        await NoteService.create(db, bob, title="Lunch")

        await NoteService.update(db, bob, note.id, {"content": "Order 777", "title": None})
        found = await NoteService.list_notes(db, bob, search="777")

        assert [n.title for n in found.items] == ["Escalation"]

    @pytest.mark.asyncio
    async def test_other_users_notes_are_off_limits(self, db, make_user):
        bob = await make_user("bob")
        alice = await make_user("alice")
        note = await NoteService.create(db, bob, title="Private")

        with pytest.raises(ForbiddenError):
            await NoteService.delete(db, alice, note.id)
        assert (await NoteService.list_notes(db, alice)).total == 0

        await NoteService.delete(db, bob, note.id)
        assert (await NoteService.list_notes(db, bob)).total == 0
