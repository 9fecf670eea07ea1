[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "infrakit"
version = "0.1.0"
description = "Builders for dnsmasq, memcached and redis workload manifests, plus IP address assignment from subnet allocation ranges"
requires-python = ">=3.10"
dependencies = []
keywords = ["kubernetes", "ipam", "dnsmasq", "memcached", "redis", "manifests", "tls"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["infrakit"]

[tool.pytest.ini_options]
addopts = "-ra"
