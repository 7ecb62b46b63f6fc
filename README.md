# diago

Media building blocks for VoIP applications, in pure Python with no
third-party dependencies.

## Modules

- `diago.g711`: G.711 μ-law and A-law companding of 16-bit little-endian
  PCM. `encode_ulaw`, `decode_ulaw`, `encode_alaw` and `decode_alaw` work on
  whole byte strings (a trailing odd PCM byte is ignored); the
  `encode_ulaw_frame`, `decode_ulaw_frame`, `encode_alaw_frame` and
  `decode_alaw_frame` functions work on single samples and raise
  `ValueError` for values out of range.
- `diago.pcm`: the `Codec` dataclass (with `samples_pcm`, `samples16` and
  `sample_timestamp`), the predefined `CODEC_AUDIO_ULAW`, `CODEC_AUDIO_ALAW`,
  `CODEC_AUDIO_OPUS` and `CODEC_TELEPHONE_EVENT_8000`, and
  `codec_audio_from_payload_type`. Translators between codecs and PCM:
  `PCMDecoder`, `PCMDecoderReader` (also iterable), `PCMDecoderWriter`,
  `PCMDecoderBuffer` (with `read_all`), `PCMEncoder` and `PCMEncoderWriter`.
  Each accepts a `Codec` or a payload type number. `samples_bytes_to_int16`
  and `samples_int16_to_bytes` convert between PCM bytes and sample lists.
- `diago.wav`: `wav_write` and `wav_write_voip_pcm` write a complete WAV
  file in one go; `WavWriter` streams data into a seekable file and rewrites
  the header with the final size on `close` (it is also a context manager);
  `WavReader` parses the RIFF and `fmt ` chunks and reads PCM from the
  `data` chunk. Malformed input raises `WavFormatError`.
- `diago.monitor`: call recording. `MonitorPCMReader` and
  `MonitorPCMWriter` pass audio through while decoding it to PCM in a
  recording stream, inserting silence where frames arrive late
  (`start_time` takes a `time.monotonic()` value). `MonitorPCMStereo`
  records both directions into temporary files and, on `close`, interleaves
  them into a two-channel stream and removes the files.
- `diago.dialog_cache`: a thread-safe `DialogCache` keyed by dialog ID with
  `store`, `load`, `delete`, `items` and `len()`; `load` raises
  `DialogDoesNotExistError` for an unknown ID.
- `diago.bridge`: `Bridge` proxies audio between two `MediaLeg`s (an id, a
  `Codec`, a reader and a writer). Legs whose codecs differ are refused with
  `BridgeError`, as are a third leg and legs without both reader and writer.
  Proxying starts in a background thread once `wait_dialogs_num` legs are
  present; with a higher `wait_dialogs_num`, `proxy_media` runs it in the
  calling thread. `copy_stream` is the copy loop it uses.

## Install

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

Encode PCM to μ-law and back:

```python
from diago.g711 import encode_ulaw, decode_ulaw

pcm = bytes(320)            # 160 silent 16-bit samples
ulaw = encode_ulaw(pcm)     # 160 bytes
restored = decode_ulaw(ulaw)
```

Write a WAV file while audio arrives:

```python
from diago.wav import WavWriter

with open("call.wav", "w+b") as f, WavWriter(f, sample_rate=8000, num_chans=1) as wav:
    wav.write(pcm)
```

Decode an A-law stream into PCM:

```python
import io
from diago.pcm import PCMDecoderReader, CODEC_AUDIO_ALAW

reader = PCMDecoderReader(CODEC_AUDIO_ALAW, io.BytesIO(encoded), buf_size=160)
pcm = b"".join(reader)
```

Bridge two call legs:

```python
from diago.bridge import Bridge, MediaLeg
from diago.pcm import CODEC_AUDIO_ALAW

bridge = Bridge()
bridge.add_dialog_session(MediaLeg("in", CODEC_AUDIO_ALAW, in_reader, in_writer))
bridge.add_dialog_session(MediaLeg("out", CODEC_AUDIO_ALAW, out_reader, out_writer))
bridge.proxy_thread.join()
```

## What it does not do

- There is no SIP signalling: no user agent, no INVITE/BYE handling, no
  registration and no server. Dialog sessions are stored and looked up by
  `DialogCache`, but creating them is left to the caller.
- There is no RTP or SRTP transport; bridges and monitors work on any
  objects with `read` and `write` methods.
- Opus is not supported: building an encoder or decoder for it raises
  `UnsupportedCodecError`. Only G.711 μ-law and A-law are translated.
- The bridge does not transcode or pass DTMF; both legs must use the same
  codec.