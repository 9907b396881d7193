[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "voicedriver"
version = "0.1.0"
description = "Core pieces of a voice connection driver: secure RTP crypto modes, retry strategies, connection helpers and an event system."
requires-python = ">=3.10"
keywords = ["voice", "rtp", "xsalsa20poly1305", "events", "retry", "audio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Multimedia :: Sound/Audio",
]
dependencies = [
    "pynacl",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["voicedriver"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
