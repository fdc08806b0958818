[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bedrock_api_helper"
version = "0.1.0"
description = "Helpers for Minecraft Bedrock Script API add-ons: npm version resolution, manifest generation, manifest rule checks and .d.ts API diffs"
requires-python = ">=3.10"
dependencies = []
keywords = ["minecraft", "bedrock", "script-api", "manifest", "npm", "typescript"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bedrock_api_helper"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
