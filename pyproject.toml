[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "voicedriver"
version = "0.1.0"
description = "Building blocks for an encrypted RTP voice connection driver: packet encryption modes, retry policies, error types and asynchronous event dispatch."
requires-python = ">=3.10"
keywords = ["voice", "rtp", "xsalsa20poly1305", "events", "retry", "backoff"]
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
    "Framework :: AsyncIO",
    "Topic :: Communications :: Conferencing",
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
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
