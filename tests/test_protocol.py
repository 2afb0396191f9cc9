import struct
import unittest

from mycord.protocol import (
    FRAME_SIZE,
    MessageKind,
    ProtocolError,
    ProtocolShortRead,
    WireMessage,
    decode_message,
    encode_message,
)


class FrameCodecTests(unittest.TestCase):
    def test_frame_size_is_fixed(self):
        self.assertEqual(FRAME_SIZE, 1064)
        self.assertEqual(len(encode_message(MessageKind.LOGIN, 0, "alice", "")), FRAME_SIZE)

    def test_round_trip(self):
        raw = encode_message(MessageKind.MESSAGE_RECV, 1700000000, "alice", "hello world")
        msg = decode_message(raw)
        self.assertEqual(msg, WireMessage(MessageKind.MESSAGE_RECV, 1700000000, "alice", "hello world"))
        self.assertIs(msg.known_kind, MessageKind.MESSAGE_RECV)

    def test_header_is_big_endian(self):
        raw = encode_message(MessageKind.SYSTEM, 5)
        self.assertEqual(raw[:8], struct.pack("!II", 13, 5))

    def test_truncates_long_fields_and_keeps_terminator(self):
        raw = encode_message(MessageKind.MESSAGE_SEND, 0, "u" * 40, "b" * 2000)
        self.assertEqual(raw[8 + 31], 0)
        self.assertEqual(raw[-1], 0)
        msg = decode_message(raw)
        self.assertEqual(msg.username, "u" * 31)
        self.assertEqual(msg.body, "b" * 1023)

    def test_unknown_kind_is_preserved(self):
        msg = decode_message(encode_message(99, 0, "", "odd"))
        self.assertEqual(msg.kind, 99)
        self.assertIsNone(msg.known_kind)

    def test_text_stops_at_first_nul(self):
        raw = bytearray(encode_message(MessageKind.SYSTEM, 0, "", "abc"))
        raw[8 + 32 + 5] = ord("z")
        self.assertEqual(decode_message(bytes(raw)).body, "abc")

    def test_short_block_raises_short_read(self):
        with self.assertRaises(ProtocolShortRead) as ctx:
            decode_message(b"\0" * 100)
        self.assertEqual(ctx.exception.received, 100)
        self.assertIsInstance(ctx.exception, ProtocolError)

    def test_long_block_raises(self):
        with self.assertRaises(ProtocolError):
            decode_message(b"\0" * (FRAME_SIZE + 1))


if __name__ == "__main__":
    unittest.main()
