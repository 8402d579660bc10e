[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xinledger"
version = "0.1.0"
description = "Fixed-point amounts, threshold scripts, ledger data types and the binary wire format for transactions, snapshots, rounds and UTXOs"
requires-python = ">=3.10"
dependencies = []
keywords = ["ledger", "transaction", "utxo", "snapshot", "encoding", "fixed-point"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["xinledger"]

[tool.pytest.ini_options]
addopts = "-ra"
