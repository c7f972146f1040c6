[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dnsproxy"
version = "0.1.0"
description = "A small UDP DNS proxy that answers blacklisted queries with an error and forwards the rest upstream"
requires-python = ">=3.11"
dependencies = []
keywords = ["dns", "proxy", "udp", "blacklist", "resolver"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Name Service (DNS)",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
dnsproxy = "dnsproxy.server:main"

[tool.hatch.build.targets.wheel]
packages = ["dnsproxy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
