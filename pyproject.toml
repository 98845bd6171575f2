[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wfdcast"
version = "0.1.0"
description = "Wi-Fi Display (Miracast) source-side protocol logic: capability parsing, encoder choice, media settings and RTSP negotiation"
requires-python = ">=3.10"
dependencies = []
keywords = ["miracast", "wifi-display", "wfd", "rtsp", "h264", "aac", "screencast"]
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
    "Topic :: Multimedia :: Video",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wfdcast"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
