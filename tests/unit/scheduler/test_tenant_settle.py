"""Tests for the settle delay between a completed session and the next turn."""

import pytest

from slot_scheduler.scheduler import SchedulerConfig, TenantScheduler
from slot_scheduler.types import AccessStatus, NotificationKind, SlotState


class TestSettleDelay:
    """complete_session(settle_delay=...) defers the hand-off."""

    @pytest.mark.asyncio
    async def test_slot_idle_but_not_offered_during_delay(self, scheduler, clock):
        """The queue head waits until the delay elapses."""
        await scheduler.request_access("alice")
        await scheduler.request_access("bob")
        await scheduler.begin_session("alice")

        await scheduler.complete_session("alice", settle_delay=5)

        snapshot = await scheduler.snapshot()
        assert snapshot.state is SlotState.IDLE
        assert snapshot.handoff_pending is True
        assert [p.requester_id for p in snapshot.queue] == ["bob"]

        await clock.advance(4.9)
        assert (await scheduler.snapshot()).state is SlotState.IDLE

        await clock.advance(0.1)
        snapshot = await scheduler.snapshot()
        assert snapshot.handoff_pending is False
        assert snapshot.reservation.requester_id == "bob"
        assert snapshot.reservation.granted_at == 5.0
        assert snapshot.reservation.expires_at == 185.0

    @pytest.mark.asyncio
    async def test_new_requester_cannot_jump_the_queue(self, scheduler, clock, notifier):
        """Arrivals during the delay queue behind existing waiters."""
        await scheduler.request_access("alice")
        await scheduler.request_access("bob")
        await scheduler.begin_session("alice")
        await scheduler.complete_session("alice", settle_delay=5)

        carol = await scheduler.request_access("carol")

        assert carol.status is AccessStatus.QUEUED
        assert carol.position == 2

        await clock.advance(5)
        snapshot = await scheduler.snapshot()
        assert snapshot.reservation.requester_id == "bob"
        assert snapshot.position_of("carol") == 1

        await scheduler.drain()
        assert notifier.for_requester("bob") == [
            NotificationKind.SESSION_GRANTED_AFTER_WAIT
        ]

    @pytest.mark.asyncio
    async def test_arrival_during_delay_with_empty_queue(self, scheduler, clock):
        """With nobody waiting, an arrival during the delay is served when it ends."""
        await scheduler.request_access("alice")
        await scheduler.begin_session("alice")
        await scheduler.complete_session("alice", settle_delay=5)

        result = await scheduler.request_access("bob")
        assert result.status is AccessStatus.QUEUED
        assert result.position == 1

        await clock.advance(5)
        assert (await scheduler.snapshot()).reservation.requester_id == "bob"

    @pytest.mark.asyncio
    async def test_delay_with_nobody_waiting(self, scheduler, clock):
        """An empty queue at the end of the delay leaves the slot free."""
        await scheduler.request_access("alice")
        await scheduler.begin_session("alice")
        await scheduler.complete_session("alice", settle_delay=5)

        await clock.advance(5)

        snapshot = await scheduler.snapshot()
        assert snapshot.state is SlotState.IDLE
        assert snapshot.handoff_pending is False

        result = await scheduler.request_access("bob")
        assert result.status is AccessStatus.GRANTED

    @pytest.mark.asyncio
    async def test_queue_head_cancels_during_delay(self, scheduler, clock):
        """A waiter leaving during the delay is skipped at hand-off."""
        await scheduler.request_access("alice")
        await scheduler.request_access("bob")
        await scheduler.request_access("carol")
        await scheduler.begin_session("alice")
        await scheduler.complete_session("alice", settle_delay=5)

        await scheduler.cancel_request("bob")
        await clock.advance(5)

        snapshot = await scheduler.snapshot()
        assert snapshot.reservation.requester_id == "carol"
        assert snapshot.queue == ()

    @pytest.mark.asyncio
    async def test_zero_delay_hands_off_immediately(self, scheduler):
        """settle_delay=0 behaves like an ordinary completion."""
        await scheduler.request_access("alice")
        await scheduler.request_access("bob")
        await scheduler.begin_session("alice")

        await scheduler.complete_session("alice", settle_delay=0)

        snapshot = await scheduler.snapshot()
        assert snapshot.handoff_pending is False
        assert snapshot.reservation.requester_id == "bob"

    @pytest.mark.asyncio
    async def test_default_delay_from_config(self, clock):
        """complete_session() falls back to config.default_settle_delay."""
        scheduler = TenantScheduler(
            "guild-1",
            config=SchedulerConfig(default_settle_delay=10, metrics_enabled=False),
            clock=clock,
        )
        await scheduler.request_access("alice")
        await scheduler.request_access("bob")
        await scheduler.begin_session("alice")

        await scheduler.complete_session("alice")

        assert (await scheduler.snapshot()).handoff_pending is True
        await clock.advance(10)
        assert (await scheduler.snapshot()).reservation.requester_id == "bob"

    @pytest.mark.asyncio
    async def test_explicit_zero_overrides_config(self, clock):
        """An explicit settle_delay of zero wins over the configured default."""
        scheduler = TenantScheduler(
            "guild-1",
            config=SchedulerConfig(default_settle_delay=10, metrics_enabled=False),
            clock=clock,
        )
        await scheduler.request_access("alice")
        await scheduler.request_access("bob")
        await scheduler.begin_session("alice")

        await scheduler.complete_session("alice", settle_delay=0)

        assert (await scheduler.snapshot()).reservation.requester_id == "bob"

    @pytest.mark.asyncio
    async def test_session_context_manager_passes_delay(self, scheduler, clock):
        """session(settle_delay=...) applies the delay on exit."""
        await scheduler.request_access("alice")
        await scheduler.request_access("bob")

        async with scheduler.session("alice", settle_delay=3):
            pass

        assert (await scheduler.snapshot()).handoff_pending is True
        await clock.advance(3)
        assert (await scheduler.snapshot()).reservation.requester_id == "bob"

    @pytest.mark.asyncio
    async def test_aclose_during_delay_cancels_hand_off(self, scheduler, clock):
        """Closing disarms the settle timer."""
        await scheduler.request_access("alice")
        await scheduler.request_access("bob")
        await scheduler.begin_session("alice")
        await scheduler.complete_session("alice", settle_delay=5)

        await scheduler.aclose()
        await clock.advance(5)

        snapshot = await scheduler.snapshot()
        assert snapshot.reservation is None
        assert [p.requester_id for p in snapshot.queue] == ["bob"]

    @pytest.mark.asyncio
    async def test_settle_timer_fired_after_close_is_ignored(self, scheduler, clock):
        """A hand-off that lost the race with aclose() is not carried out."""
        await scheduler.request_access("alice")
        await scheduler.request_access("bob")
        await scheduler.begin_session("alice")
        await scheduler.complete_session("alice", settle_delay=5)
        settle = clock.timers[-1]

        await scheduler.aclose()
        await settle.fire()

        snapshot = await scheduler.snapshot()
        assert snapshot.reservation is None
        assert snapshot.handoff_pending is True
        assert [p.requester_id for p in snapshot.queue] == ["bob"]
        assert clock.pending == []
