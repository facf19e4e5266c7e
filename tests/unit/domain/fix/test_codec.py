"""Tests for the FIX tag-value codec."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from fix_trade_sim.domain.fix import codec
from fix_trade_sim.domain.fix.message import SOH
from fix_trade_sim.domain.fix.tags import AssetClass, MsgType, OrderStatus, Side


class TestEncode:
    """Test framing of tag mappings."""

    def test_encode_known_cancel_request(self):
        """Test the exact wire form of a small cancel request.

        Given - ClOrdID C-1 cancelling O-1
        When - The tags are encoded
        Then - BodyLength and CheckSum match the hand-computed values
        """
        # Given - A two-tag cancel request
        tags = {"11": "C-1", "41": "O-1"}

        # When - We encode it
        raw = codec.encode(MsgType.ORDER_CANCEL_REQUEST, tags)

        # Then - The framing is exact
        assert (
            codec.to_display_string(raw)
            == "8=FIX.4.4|9=19|35=F|11=C-1|41=O-1|10=127|"
        )

    def test_encode_preserves_insertion_order(self):
        """Test that tags are written in caller order, not sorted."""
        raw = codec.encode("D", {"55": "AAPL", "11": "A", "38": 100})

        segments = [s for s in raw.split(SOH) if s]
        assert segments[2:6] == ["35=D", "55=AAPL", "11=A", "38=100"]

    def test_encode_skips_framing_tags(self):
        """Test that caller-supplied 8, 9, 10 and 35 are ignored.

        Given - A mapping that tries to override every framing tag
        When - The mapping is encoded as a NewOrderSingle
        Then - The codec writes its own framing exactly once
        """
        # Given - Framing tags in the business mapping
        tags = {"8": "FIX.9", "9": "999", "35": "Z", "10": "000", "11": "A"}

        # When - We encode
        raw = codec.encode(MsgType.NEW_ORDER_SINGLE, tags)
        decoded = codec.decode(raw)

        # Then - Only the codec's framing survives
        assert decoded["8"] == "FIX.4.4"
        assert decoded["35"] == "D"
        assert decoded["11"] == "A"
        assert raw.count(f"{SOH}35=") == 1
        assert codec.verify_checksum(raw)

    def test_encode_uses_begin_string(self):
        """Test that the begin string parameter reaches tag 8."""
        raw = codec.encode("F", {"11": "A"}, begin_string="FIX.4.2")

        assert raw.startswith("8=FIX.4.2" + SOH)

    def test_body_length_counts_utf8_bytes(self):
        """Test that BodyLength counts bytes, not characters.

        Given - A value with a two-byte character
        When - The message is encoded
        Then - Tag 9 counts the extra byte
        """
        # Given - 'é' is two bytes in UTF-8
        tags = {"58": "é"}

        # When - We encode
        raw = codec.encode("D", tags)

        # Then - 35=D<SOH> (5) + 58=é<SOH> (6 bytes)
        assert codec.decode(raw)["9"] == "11"
        assert codec.verify_checksum(raw)


class TestFormatValue:
    """Test rendering of scalar tag values."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (100.0, "100"),
            (0.5, "0.5"),
            (150.25, "150.25"),
            (7, "7"),
            (True, "Y"),
            (False, "N"),
            (Decimal("1.50"), "1.50"),
            ("AAPL", "AAPL"),
        ],
    )
    def test_scalar_values(self, value, expected):
        assert codec.format_value(value) == expected

    def test_enums_render_as_wire_codes(self):
        """Test that enums with a fix_code use it."""
        assert codec.format_value(Side.BUY) == "1"
        assert codec.format_value(Side.SELL) == "2"
        assert codec.format_value(OrderStatus.PENDING_REPLACE) == "E"

    def test_enums_without_code_render_their_value(self):
        assert codec.format_value(AssetClass.FX) == "FX"


class TestDecode:
    """Test the lenient decoder."""

    def test_decode_skips_malformed_segments(self):
        """Test that segments without '=' or without a tag are dropped.

        Given - A wire string with garbage, empty and tagless segments
        When - The string is decoded
        Then - Only the well-formed pairs remain
        """
        # Given - Mixed good and bad segments
        raw = f"8=FIX.4.4{SOH}garbage{SOH}{SOH}55=AAPL{SOH}=x{SOH}"

        # When - We decode
        tags = codec.decode(raw)

        # Then - Bad segments are gone
        assert tags == {"8": "FIX.4.4", "55": "AAPL"}

    def test_decode_keeps_text_after_first_equals(self):
        tags = codec.decode(f"58=a=b{SOH}")

        assert tags["58"] == "a=b"

    def test_repeated_tag_keeps_last_value(self):
        tags = codec.decode(f"55=AAPL{SOH}55=MSFT{SOH}")

        assert tags["55"] == "MSFT"


class TestParseMessage:
    """Test conversion of wire strings into FixMessage."""

    def test_parse_uses_declared_type(self):
        raw = codec.encode(MsgType.EXECUTION_REPORT, {"11": "A"})

        message = codec.parse_message(raw)

        assert message.msg_type is MsgType.EXECUTION_REPORT
        assert message.get(11) == "A"
        assert message.raw == raw

    def test_missing_type_falls_back(self):
        """Test that a message without tag 35 takes the fallback type."""
        message = codec.parse_message(f"11=A{SOH}55=AAPL{SOH}")

        assert message.msg_type is MsgType.NEW_ORDER_SINGLE

    def test_unsupported_type_uses_given_fallback(self):
        """Test that an unknown tag 35 code uses the caller's fallback.

        Given - A message declaring type ZZ
        When - Parsed with ExecutionReport as the fallback
        Then - The message is typed ExecutionReport and 35 is kept as sent
        """
        # Given - Unsupported message type
        raw = f"8=FIX.4.4{SOH}35=ZZ{SOH}11=A{SOH}"

        # When - We parse with a non-default fallback
        message = codec.parse_message(raw, fallback=MsgType.EXECUTION_REPORT)

        # Then - Fallback type, original tag value
        assert message.msg_type is MsgType.EXECUTION_REPORT
        assert message.get(35) == "ZZ"


class TestChecksum:
    """Test checksum verification."""

    def test_encoded_message_verifies(self):
        raw = codec.encode("D", {"11": "A", "55": "AAPL"})

        assert codec.verify_checksum(raw)

    def test_tampered_message_fails(self):
        """Test that changing one byte breaks the checksum."""
        raw = codec.encode("D", {"11": "A", "55": "AAPL"})

        tampered = raw.replace("55=AAPL", "55=AAPM")

        assert not codec.verify_checksum(tampered)

    def test_message_without_trailer_fails(self):
        assert not codec.verify_checksum(f"8=FIX.4.4{SOH}35=D{SOH}")

    def test_checksum_is_three_digits(self):
        assert codec.calculate_checksum("\x01") == "001"


class TestDisplayConversion:
    """Test SOH and pipe conversion."""

    def test_display_round_trip(self):
        raw = codec.encode("F", {"11": "C-1", "41": "O-1"})

        display = codec.to_display_string(raw)

        assert SOH not in display
        assert codec.from_display_string(display) == raw


class TestTimestamps:
    """Test TransactTime and TradeDate formatting."""

    def test_transact_time_format(self):
        moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        assert codec.format_transact_time(moment) == "20240102-03:04:05"

    def test_aware_time_is_converted_to_utc(self):
        """Test that a non-UTC instant is shifted to UTC."""
        plus_two = timezone(timedelta(hours=2))
        moment = datetime(2024, 1, 2, 5, 4, 5, tzinfo=plus_two)

        assert codec.format_transact_time(moment) == "20240102-03:04:05"

    def test_trade_date_format(self):
        moment = datetime(2024, 12, 31, 23, 0, 0, tzinfo=timezone.utc)

        assert codec.format_trade_date(moment) == "20241231"
