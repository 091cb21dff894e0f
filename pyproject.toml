[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "releaseflow"
version = "0.1.0"
description = "Release pipeline helpers: object metadata, release metrics, PipelineRun building, predicates and snapshot syncing"
requires-python = ">=3.10"
dependencies = []
keywords = ["release", "pipeline", "pipelinerun", "metrics", "kubernetes", "ci"]
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
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["releaseflow"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
