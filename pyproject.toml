[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "grzcheck"
version = "0.1.0"
description = "Integrity checks and SHA-256 checksums for sequencing files (FASTQ, BAM)"
requires-python = ">=3.10"
keywords = ["fastq", "bam", "sequencing", "checksum", "validation", "genomics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]
dependencies = [
    "tqdm",
    "zstandard",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
grz-check = "grzcheck.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["grzcheck"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
