[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinyhttpd"
version = "0.4.0"
description = "Building blocks for a small embeddable HTTP server (response buffering, basic auth, websockets) and a monochrome OLED display toolkit"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "http",
    "websocket",
    "basic-auth",
    "chunked",
    "sha1",
    "hmac",
    "base64",
    "oled",
    "sh1106",
    "framebuffer",
]
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
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tinyhttpd"]

[tool.hatch.build.targets.sdist]
include = ["tinyhttpd", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
