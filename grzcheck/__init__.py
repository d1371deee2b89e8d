"""Integrity checks and SHA-256 checksums for FASTQ, BAM and other files."""

__version__ = "0.1.0"