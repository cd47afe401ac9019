[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lpastore"
version = "0.1.0"
description = "Validation and application of change sets to lasting power of attorney records, with a local API gateway for development."
requires-python = ">=3.11"
dependencies = []
keywords = ["lpa", "power of attorney", "change set", "validation", "api gateway"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
lpastore-gateway = "lpastore.gateway:main"

[tool.hatch.build.targets.wheel]
packages = ["lpastore"]

[tool.pytest.ini_options]
addopts = "-ra"
