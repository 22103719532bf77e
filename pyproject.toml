[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "retcon"
version = "0.1.0"
description = "Baseline Active Directory objects and generate PowerShell remediation scripts that restore them"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "active-directory",
    "ldap",
    "remediation",
    "powershell",
    "baseline",
    "schema",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration :: Authentication/Directory :: LDAP",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["retcon"]

[tool.hatch.build.targets.sdist]
include = ["retcon", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
