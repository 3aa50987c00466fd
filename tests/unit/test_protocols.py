"""Tests for the collaborator protocols."""

from slot_scheduler.protocols import (
    BoardProtocol,
    ClockProtocol,
    NotifierProtocol,
    TimerHandle,
)


class TestProtocolConformance:
    """Structural checks for host-provided implementations."""

    def test_custom_notifier(self):
        class DiscordNotifier:
            async def notify(self, requester_id, kind, details):
                return None

        assert isinstance(DiscordNotifier(), NotifierProtocol)

    def test_custom_board(self):
        class ChannelBoard:
            async def render(self, tenant_id, snapshot):
                return None

        assert isinstance(ChannelBoard(), BoardProtocol)

    def test_incomplete_clock_rejected(self):
        class OnlyNow:
            def now(self):
                return 0.0

        assert not isinstance(OnlyNow(), ClockProtocol)

    def test_timer_handle(self):
        class Handle:
            def cancel(self):
                pass

            def cancelled(self):
                return False

        assert isinstance(Handle(), TimerHandle)
        assert not isinstance(object(), TimerHandle)
