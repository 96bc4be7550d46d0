[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kbcore"
version = "0.3.0"
description = "Core library for a structured, file-based knowledge base of project expertise"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["knowledge-base", "expertise", "bm25", "agents", "jsonl"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Documentation",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["kbcore"]

[tool.pytest.ini_options]
addopts = "-ra"
