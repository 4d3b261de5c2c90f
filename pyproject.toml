[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hlstools"
version = "0.1.0"
description = "HLS playlist parsing and generation, codec parameter strings, part duration selection and segment storage"
requires-python = ">=3.10"
dependencies = []
keywords = ["hls", "m3u8", "playlist", "streaming", "low-latency", "fmp4", "codecs"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hlstools"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
