[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "oscpacket"
version = "0.1.0"
description = "Build, parse and print Open Sound Control (OSC) packets"
requires-python = ">=3.10"
dependencies = []
keywords = ["osc", "open sound control", "audio", "protocol", "packet"]
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
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["oscpacket"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
