[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tcontainers"
version = "0.1.0"
description = "Wait strategies, reaper client and helpers for running throwaway containers in tests"
requires-python = ">=3.10"
dependencies = []
keywords = ["testing", "containers", "docker", "integration-tests", "wait-strategies"]
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
    "Topic :: Software Development :: Testing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tcontainers"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
