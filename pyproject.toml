[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "collateral_vault"
version = "0.1.0"
description = "Collateral vault accounting, vault instruction rules and live WebSocket notifications for a perpetual futures exchange"
requires-python = ">=3.10"
dependencies = [
    "aiohttp",
]
keywords = [
    "collateral",
    "vault",
    "defi",
    "solana",
    "websocket",
    "perpetual-futures",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["collateral_vault"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
