import io

import pytest

from diago.bridge import Bridge, BridgeError, MediaLeg, copy_stream
from diago.pcm import CODEC_AUDIO_ALAW, CODEC_AUDIO_ULAW


def answered_leg(name, size=9999, codec=CODEC_AUDIO_ALAW):
    return MediaLeg(name, codec, io.BytesIO(bytes(size)), io.BytesIO())


class _TimeoutReader:
    def __init__(self, data):
        self._data = data

    def read(self, size):
        if self._data:
            chunk, self._data = self._data[:size], self._data[size:]
            return chunk
        raise TimeoutError("rtp deadline")


class _FailingReader:
    def read(self, size):
        raise OSError("broken")


class _ShortWriter:
    def write(self, data):
        return len(data) - 1


def test_bridge_proxy():
    bridge = Bridge()
    bridge.wait_dialogs_num = 99
    incoming = answered_leg("incoming")
    outgoing = answered_leg("outgoing")
    bridge.add_dialog_session(incoming)
    bridge.add_dialog_session(outgoing)
    assert bridge.proxy_thread is None

    bridge.proxy_media()
    assert len(incoming.writer.getvalue()) == 9999
    assert len(outgoing.writer.getvalue()) == 9999


def test_bridge_no_transcoding_allowed():
    bridge = Bridge()
    bridge.add_dialog_session(MediaLeg("incoming", CODEC_AUDIO_ALAW))
    with pytest.raises(BridgeError, match="no transcoding"):
        bridge.add_dialog_session(MediaLeg("outgoing", CODEC_AUDIO_ULAW))
    assert len(bridge.dialogs) == 1


def test_first_leg_becomes_originator():
    bridge = Bridge(wait_dialogs_num=99)
    first = answered_leg("first")
    bridge.add_dialog_session(first)
    bridge.add_dialog_session(answered_leg("second"))
    assert bridge.originator is first


def test_not_answered_leg_rejected():
    bridge = Bridge()
    bridge.add_dialog_session(answered_leg("incoming"))
    with pytest.raises(BridgeError, match="not answered"):
        bridge.add_dialog_session(MediaLeg("outgoing", CODEC_AUDIO_ALAW))


def test_only_two_parties():
    bridge = Bridge(wait_dialogs_num=3)
    bridge.add_dialog_session(answered_leg("a"))
    bridge.add_dialog_session(answered_leg("b"))
    with pytest.raises(BridgeError, match="2 party"):
        bridge.add_dialog_session(answered_leg("c"))


def test_automatic_background_proxy():
    bridge = Bridge()
    incoming = answered_leg("incoming", size=4000)
    outgoing = answered_leg("outgoing", size=3000)
    bridge.add_dialog_session(incoming)
    bridge.add_dialog_session(outgoing)
    assert bridge.proxy_thread is not None
    bridge.proxy_thread.join(timeout=5)
    assert not bridge.proxy_thread.is_alive()
    assert len(incoming.writer.getvalue()) == 3000
    assert len(outgoing.writer.getvalue()) == 4000


def test_proxy_media_needs_two_dialogs():
    bridge = Bridge(wait_dialogs_num=99)
    bridge.add_dialog_session(answered_leg("a"))
    with pytest.raises(BridgeError, match="must equal to 2"):
        bridge.proxy_media()


def test_proxy_media_refuses_when_auto_started():
    bridge = Bridge(wait_dialogs_num=2)
    bridge.add_dialog_session(answered_leg("a"))
    bridge.add_dialog_session(answered_leg("b"))
    bridge.proxy_thread.join(timeout=5)
    with pytest.raises(BridgeError, match="already running"):
        bridge.proxy_media()


def test_proxy_timeout_is_not_an_error():
    bridge = Bridge(wait_dialogs_num=99)
    a = MediaLeg("a", CODEC_AUDIO_ALAW, _TimeoutReader(b"x" * 100), io.BytesIO())
    b = answered_leg("b", size=50)
    bridge.add_dialog_session(a)
    bridge.add_dialog_session(b)
    bridge.proxy_media()
    assert b.writer.getvalue() == b"x" * 100
    assert a.writer.getvalue() == bytes(50)


def test_proxy_error_propagates():
    bridge = Bridge(wait_dialogs_num=99)
    bridge.add_dialog_session(MediaLeg("a", CODEC_AUDIO_ALAW, _FailingReader(), io.BytesIO()))
    bridge.add_dialog_session(answered_leg("b"))
    with pytest.raises(OSError, match="broken"):
        bridge.proxy_media()


def test_copy_stream_copies_everything():
    data = bytes(range(256)) * 16
    target = io.BytesIO()
    assert copy_stream(io.BytesIO(data), target, 1500) == len(data)
    assert target.getvalue() == data


def test_copy_stream_short_write():
    with pytest.raises(OSError, match="short write"):
        copy_stream(io.BytesIO(b"abc"), _ShortWriter())


def test_leg_answered_flag():
    leg = MediaLeg("a", CODEC_AUDIO_ALAW, io.BytesIO(), None)
    assert leg.answered is False
    leg.writer = io.BytesIO()
    assert leg.answered is True