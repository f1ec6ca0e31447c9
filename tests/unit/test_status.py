"""Tests for status banners and their auto-dismiss."""

import pytest

from hafalan_portal.portal.status import StatusChannel, StatusKind

pytestmark = pytest.mark.unit


class TestStatusChannel:
    """Tests for StatusChannel."""

    @pytest.fixture
    def channel(self, clock):
        return StatusChannel(dismiss_after=5.0, clock=clock)

    def test_starts_empty(self, channel):
        assert channel.current is None
        assert channel.remaining() == 0.0

    def test_success_is_visible(self, channel):
        channel.success("Data berhasil disimpan.")
        message = channel.current
        assert message.kind == StatusKind.SUCCESS
        assert message.title == "Berhasil!"
        assert not message.is_error

    def test_expires_after_delay(self, channel, clock):
        """The banner should disappear once the delay has passed."""
        channel.error("Gagal")
        clock.advance(4.9)
        assert channel.current is not None
        assert channel.remaining() == pytest.approx(0.1)
        clock.advance(0.5)
        assert channel.current is None

    def test_newer_message_supersedes(self, channel, clock):
        """A newer message replaces the old one and restarts the delay."""
        channel.success("pertama")
        clock.advance(4.0)
        channel.error("kedua")
        clock.advance(4.0)
        message = channel.current
        assert message.message == "kedua"
        assert message.title == "Error!"

    def test_clear(self, channel):
        channel.success("x")
        channel.clear()
        assert channel.current is None
