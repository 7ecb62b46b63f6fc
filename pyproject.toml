[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "diago"
version = "0.1.0"
description = "VoIP media helpers: G.711 codecs, PCM encoding pipelines, WAV files, call recording monitors, dialog caches and two-party media bridging"
requires-python = ">=3.10"
dependencies = []
keywords = ["voip", "g711", "pcm", "wav", "audio", "bridge", "recording"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Internet Phone",
    "Topic :: Multimedia :: Sound/Audio :: Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["diago"]

[tool.pytest.ini_options]
addopts = "-ra"
