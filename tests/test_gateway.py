"""
Mutation gateway tests: confirmed status writes and the optimistic patch.
"""

from unittest.mock import MagicMock, patch

import pytest

from orderdesk.core.exceptions import DocumentNotFound, MutationError
from orderdesk.modules.orders.gateway import CONFIRM_PROMPT, MutationGateway


def test_confirmed_mark_delivered_updates_store_and_row(board, store):
    before = board.rows

    assert board.mark_delivered("o1", True) is True

    assert store.get_document("orders", "o1").get("status") == "Delivered"
    after = board.rows
    assert [row["id"] for row in after] == [row["id"] for row in before]
    assert after[0]["status"] == "Delivered"
    assert {k: v for k, v in after[0].items() if k != "status"} == \
        {k: v for k, v in before[0].items() if k != "status"}
    assert after[1:] == before[1:]


def test_delivered_order_moves_between_partitions(board):
    board.mark_delivered("o3", True)

    assert [row["id"] for row in board.pending_orders()] == ["o1"]
    assert [row["id"] for row in board.delivered_orders()] == ["o2", "o3"]


def test_declined_confirmation_changes_nothing(board, store):
    before = board.rows
    confirm = MagicMock(return_value=False)

    with patch.object(store, "update_field") as update_field:
        assert board.mark_delivered("o1", confirm) is False
        assert board.mark_delivered("o1", False) is False

    confirm.assert_called_once_with()
    update_field.assert_not_called()
    assert board.rows == before


def test_confirmation_callable_is_asked_each_time(board):
    confirm = MagicMock(return_value=True)

    board.mark_delivered("o2", confirm)
    board.mark_delivered("o2", confirm)

    assert confirm.call_count == 2
    assert board.get_row("o2")["status"] == "Delivered"


def test_marking_twice_is_idempotent(board, store):
    board.mark_delivered("o1", True)
    first = board.rows

    assert board.mark_delivered("o1", True) is True

    assert board.rows == first
    assert store.get_document("orders", "o1").get("status") == "Delivered"


def test_missing_order_raises_and_leaves_rows_unchanged(board):
    before = board.rows

    with pytest.raises(DocumentNotFound):
        board.mark_delivered("nope", True)

    assert board.rows == before


def test_rejected_write_propagates_without_local_patch(board, store):
    before = board.rows

    with patch.object(store, "update_field", side_effect=MutationError("write denied")):
        with pytest.raises(MutationError, match="write denied"):
            board.mark_delivered("o1", True)

    assert board.rows == before
    assert board.get_row("o1")["status"] == "Pending"


def test_gateway_without_board_only_writes(store):
    gateway = MutationGateway(store)

    assert gateway.mark_delivered("o1", lambda: True) is True
    assert store.get_document("orders", "o1").get("status") == "Delivered"


def test_write_intent_recorded_when_store_does_not_push(store):
    board = MagicMock()
    gateway = MutationGateway(store, board=board)

    with patch.object(store, "update_field") as update_field:
        gateway.mark_delivered("o1", True)

    update_field.assert_called_once_with("orders", "o1", "status", "Delivered")
    board.apply_write_intent.assert_called_once_with("o1", {"status": "Delivered"})


def test_confirm_prompt_text():
    assert CONFIRM_PROMPT == "Are you sure you want to mark this order as delivered?"
