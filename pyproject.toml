[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pinpoint"
version = "0.1.0"
description = "Speech-to-text and text-to-speech backends for cloud speech services, with supporting tools"
requires-python = ">=3.10"
keywords = [
    "speech",
    "stt",
    "tts",
    "transcription",
    "speech-synthesis",
    "azure",
    "assemblyai",
    "ssml",
    "phonemes",
]
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
    "Topic :: Multimedia :: Sound/Audio :: Speech",
]
dependencies = [
    "httpx",
    "websocket-client",
    "platformdirs",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pinpoint"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
