"""Unit tests for in-flight guards and optimistic lists."""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from botdesk.errors import BotdeskError
from botdesk.session import (
    ActionResult,
    ControllerPhase,
    ControllerSnapshot,
    GuardState,
    InFlightGuard,
    OptimisticList,
    Outcome,
    SendResult,
)


class TestInFlightGuard:
    """Tests for the IDLE/IN_FLIGHT state machine."""

    def test_starts_idle(self):
        """Test the initial state."""
        guard = InFlightGuard("sending")

        assert guard.state == GuardState.IDLE
        assert guard.busy is False
        assert guard.key is None

    def test_second_acquire_refused(self):
        """Test that a guard in flight refuses another start."""
        guard = InFlightGuard("sending")

        assert guard.acquire("c1") is True
        assert guard.acquire("c2") is False
        assert guard.key == "c1"

    def test_release_returns_to_idle(self):
        """Test that release allows the next acquire."""
        guard = InFlightGuard("sending")
        guard.acquire()
        guard.release()

        assert guard.state == GuardState.IDLE
        assert guard.acquire() is True

    def test_release_while_idle_raises(self):
        """Test that releasing an idle guard is a programming error."""
        with pytest.raises(RuntimeError):
            InFlightGuard("sending").release()

    def test_reset(self):
        """Test that reset forces the guard idle."""
        guard = InFlightGuard("deleting_chat")
        guard.acquire("c1")
        guard.reset()

        assert guard.busy is False
        assert guard.key is None

    def test_stale_release_after_reset_is_ignored(self):
        """Test that a holder from before a reset cannot release the next holder."""
        guard = InFlightGuard("deleting_chat")
        guard.acquire("old")
        stale = guard.generation
        guard.reset()
        guard.acquire("new")

        assert guard.release(stale) is False
        assert guard.busy is True
        assert guard.key == "new"

    def test_release_with_current_generation(self):
        """Test that the current holder releases with its own generation."""
        guard = InFlightGuard("creating_chat")
        guard.acquire("bot")
        current = guard.generation

        assert guard.release(current) is True
        assert guard.busy is False

    def test_stale_release_while_idle_does_not_raise(self):
        """Test that a holder whose guard was reset can still finish quietly."""
        guard = InFlightGuard("sending")
        guard.acquire("c1")
        stale = guard.generation
        guard.reset()

        assert guard.release(stale) is False
        assert guard.state == GuardState.IDLE

    @given(st.lists(st.booleans(), max_size=50))
    def test_never_two_in_flight(self, steps: list[bool]):
        """Property test: at most one acquire succeeds between releases."""
        guard = InFlightGuard("prop")
        in_flight = 0
        for is_acquire in steps:
            if is_acquire:
                if guard.acquire():
                    in_flight += 1
            elif guard.busy:
                guard.release()
                in_flight -= 1
            assert in_flight in (0, 1)
            assert guard.busy == (in_flight == 1)


class TestOptimisticList:
    """Tests for apply/confirm/revert."""

    def test_apply_shows_item_immediately(self):
        """Test that an applied item is visible and pending."""
        items = OptimisticList(["a"])

        pending = items.apply("b")

        assert items.items == ["a", "b"]
        assert items.is_pending(pending)
        assert items.pending_count == 1

    def test_confirm_with_replacement(self):
        """Test that confirm swaps in the stored version."""
        items = OptimisticList()
        pending = items.apply("draft")

        assert items.confirm(pending, "stored") is True
        assert items.items == ["stored"]
        assert items.pending_count == 0

    def test_revert_removes_only_that_item(self):
        """Test that revert removes the pending item and nothing else."""
        items = OptimisticList(["a"])
        first = items.apply("b")
        items.append("c")

        assert items.revert(first) is True
        assert items.items == ["a", "c"]

    def test_confirm_after_clear_is_noop(self):
        """Test that late confirmations after clear() change nothing."""
        items = OptimisticList()
        pending = items.apply("x")
        items.clear()

        assert items.confirm(pending) is False
        assert items.revert(pending) is False
        assert len(items) == 0

    @given(st.lists(st.text(), max_size=10), st.text())
    def test_apply_then_revert_restores(self, initial: list[str], extra: str):
        """Property test: apply followed by revert leaves the list unchanged."""
        items = OptimisticList(initial)

        pending = items.apply(extra)
        items.revert(pending)

        assert items.items == initial

    @given(st.lists(st.text(), max_size=10), st.text())
    def test_apply_then_confirm_appends(self, initial: list[str], extra: str):
        """Property test: apply followed by confirm is a plain append."""
        items = OptimisticList(initial)

        items.confirm(items.apply(extra))

        assert items.items == [*initial, extra]


class TestResults:
    """Tests for ActionResult and SendResult."""

    def test_constructors(self):
        """Test the outcome set by each constructor."""
        error = BotdeskError("boom")

        assert ActionResult.confirmed("x").ok is True
        assert ActionResult.confirmed("x").value == "x"
        assert ActionResult.rejected(error).outcome == Outcome.REJECTED
        assert ActionResult.failed(error).error is error
        assert ActionResult.discarded().ok is False

    def test_send_result_rejected_keeps_type(self):
        """Test that SendResult constructors build SendResult."""
        result = SendResult.rejected(BotdeskError("busy"))

        assert isinstance(result, SendResult)
        assert result.reply is None


class TestControllerSnapshot:
    """Tests for snapshot helper properties."""

    def _snapshot(self, **overrides):
        values = dict(
            phase=ControllerPhase.READY,
            bot=None,
            chats=(),
            selected_chat_id="c1",
            messages=(),
            draft="hi",
            sending=False,
            loading_messages=False,
            creating_chat=False,
            deleting_chat_id=None,
            error=None,
        )
        values.update(overrides)
        return ControllerSnapshot(**values)

    def test_can_submit(self):
        """Test when the send action is available."""
        assert self._snapshot().can_submit is True
        assert self._snapshot(draft="  ").can_submit is False
        assert self._snapshot(sending=True).can_submit is False
        assert self._snapshot(phase=ControllerPhase.MESSAGES_LOADING).can_submit is False

    def test_can_delete_needs_two_chats(self):
        """Test that the delete action is hidden for the last session."""
        assert self._snapshot(chats=("one",)).can_delete_chat is False
        assert self._snapshot(chats=("one", "two")).can_delete_chat is True
