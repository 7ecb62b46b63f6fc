"""VoIP media helpers: G.711 codecs, PCM pipelines, WAV files, recording monitors, dialog cache and bridging."""

__version__ = "0.1.0"

__all__ = ["bridge", "dialog_cache", "g711", "monitor", "pcm", "wav"]