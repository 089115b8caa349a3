[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "relaybridge"
version = "0.1.0"
description = "Cross-chain bridge relayer core: message routing, deposit parsing, proposal voting, block and nonce stores, and keystores."
requires-python = ">=3.10"
keywords = ["bridge", "relayer", "evm", "ethereum", "cross-chain", "keystore", "secp256k1"]
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Security :: Cryptography",
]
dependencies = [
    "cryptography",
    "pycryptodome",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["relaybridge"]

[tool.pytest.ini_options]
addopts = "-ra"
