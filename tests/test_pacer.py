from dataclasses import dataclass

import pytest

from rtpflow.pacer import NoOpPacer, UnknownStreamError


@dataclass
class Header:
    ssrc: int
    sequence_number: int = 0


class RecordingWriter:
    def __init__(self):
        self.written = []

    def write(self, header, payload, attributes):
        self.written.append((header, payload, attributes))
        return len(payload)


def test_write_forwards_to_registered_stream():
    pacer = NoOpPacer()
    writer = RecordingWriter()
    pacer.add_stream(7, writer)
    header = Header(ssrc=7, sequence_number=3)
    result = pacer.write(header, b"abc", {"key": "value"})
    assert result == len(b"abc")
    assert writer.written == [(header, b"abc", {"key": "value"})]


def test_unknown_ssrc_raises():
    pacer = NoOpPacer()
    pacer.add_stream(1, RecordingWriter())
    with pytest.raises(UnknownStreamError) as info:
        pacer.write(Header(ssrc=99), b"x", None)
    assert info.value.ssrc == 99
    assert "unknown ssrc" in str(info.value)


def test_callable_writer_is_accepted():
    pacer = NoOpPacer()
    calls = []
    pacer.add_stream(2, lambda header, payload, attributes: calls.append(payload) or len(payload))
    assert pacer.write(Header(ssrc=2), b"hello", None) == len(b"hello")
    assert calls == [b"hello"]


def test_target_bitrate_does_not_affect_sending():
    with NoOpPacer() as pacer:
        writer = RecordingWriter()
        pacer.add_stream(5, writer)
        pacer.set_target_bitrate(1)
        pacer.write(Header(ssrc=5), b"payload", None)
    assert [payload for _, payload, _ in writer.written] == [b"payload"]


def test_add_stream_replaces_writer():
    pacer = NoOpPacer()
    old, new = RecordingWriter(), RecordingWriter()
    pacer.add_stream(3, old)
    pacer.add_stream(3, new)
    pacer.write(Header(ssrc=3), b"z", None)
    assert old.written == []
    assert len(new.written) == 1