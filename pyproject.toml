[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtpflow"
version = "0.1.0"
description = "Building blocks for real-time media transport: delay and loss based congestion control, jitter buffering and loss tracking for RTP streams."
requires-python = ">=3.10"
dependencies = []
keywords = ["rtp", "webrtc", "congestion-control", "gcc", "jitter-buffer", "nack", "bandwidth-estimation"]
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
    "Topic :: System :: Networking",
    "Topic :: Multimedia :: Video",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rtpflow"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
