"""Tests for ChannelUpdate validation and color normalization."""

import pytest

from huestream.errors import EncodingError, InvalidChannel, TooManyChannels
from huestream.schemas import RGBA, RGBA64, ChannelUpdate, rgb, to_rgba64


class TestChannelUpdateParse:
    """Tests for ChannelUpdate.parse."""

    def test_none_is_empty_update(self):
        """Test None parses to an empty update."""
        update = ChannelUpdate.parse(None)

        assert update.is_empty()
        assert len(update) == 0

    def test_mapping_is_normalized_to_sixteen_bit(self):
        """Test mapping values become RGBA64."""
        # Act
        update = ChannelUpdate.parse({0: rgb(255, 0, 0), 19: (0, 0, 128)})

        # Assert
        assert update.channels == {
            0: RGBA64(r=0xFFFF, g=0, b=0),
            19: RGBA64(r=0, g=0, b=0x8080, a=0xFFFF),
        }

    def test_sequence_uses_index_as_channel(self):
        """Test a list of colors is keyed by position."""
        update = ChannelUpdate.parse([rgb(1, 2, 3), rgb(4, 5, 6)])

        assert list(update.channels) == [0, 1]

    def test_twenty_channels_accepted(self):
        """Test the protocol maximum is allowed."""
        update = ChannelUpdate.parse({i: rgb(0, 0, 0) for i in range(20)})

        assert len(update) == 20

    def test_twenty_one_channels_rejected(self):
        """Test more than 20 entries raise TooManyChannels."""
        with pytest.raises(TooManyChannels):
            ChannelUpdate.parse([rgb(0, 0, 0)] * 21)

    @pytest.mark.parametrize("channel_id", [-1, 20, 255])
    def test_channel_id_out_of_range_rejected(self, channel_id):
        """Test channel ids outside 0..19 raise InvalidChannel."""
        with pytest.raises(InvalidChannel):
            ChannelUpdate.parse({channel_id: rgb(0, 0, 0)})

    @pytest.mark.parametrize("channel_id", ["0", 1.0, True])
    def test_non_integer_channel_id_rejected(self, channel_id):
        """Test channel ids must be plain integers."""
        with pytest.raises(InvalidChannel):
            ChannelUpdate.parse({channel_id: rgb(0, 0, 0)})

    def test_unsupported_update_type_rejected(self):
        """Test a string is not an update."""
        with pytest.raises(EncodingError):
            ChannelUpdate.parse("red")

    def test_existing_update_returned_as_is(self):
        """Test parsing a ChannelUpdate is a no-op."""
        update = ChannelUpdate.parse({1: rgb(1, 1, 1)})

        assert ChannelUpdate.parse(update) is update


class TestToRgba64:
    """Tests for to_rgba64."""

    def test_eight_bit_expansion(self):
        """Test 0xFF expands to 0xFFFF and alpha is kept for the caller to drop."""
        assert to_rgba64(RGBA(r=255, g=1, b=0, a=0)) == RGBA64(r=0xFFFF, g=0x0101, b=0, a=0)

    def test_tuple_with_alpha(self):
        """Test a 4-tuple is read as 8-bit RGBA."""
        assert to_rgba64((1, 2, 3, 4)).rgba() == (0x0101, 0x0202, 0x0303, 0x0404)

    def test_rgba64_returned_unchanged(self):
        """Test RGBA64 instances pass through."""
        color = RGBA64(r=1, g=2, b=3)

        assert to_rgba64(color) is color

    @pytest.mark.parametrize("value", [None, "red", (1, 2), (1, 2, 3, 4, 5), 0xFF0000])
    def test_unsupported_values_rejected(self, value):
        """Test non-color values raise EncodingError."""
        with pytest.raises(EncodingError):
            to_rgba64(value)

    def test_out_of_range_component_rejected(self):
        """Test -1 is not a valid 8-bit component."""
        with pytest.raises(EncodingError):
            to_rgba64((-1, 0, 0))
