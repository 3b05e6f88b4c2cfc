"""
Utility functions for gffparse: logging setup and file opening.
"""

import gzip
import logging
import os
import re
import sys
from typing import IO, Optional

from gffparse.core.models import Dialect


# Recognized annotation file extensions, optionally gzip compressed
GTF_EXTENSION = re.compile(r'\.gtf(?:\.gz)?$', re.IGNORECASE)
GFF3_EXTENSION = re.compile(r'\.gff3(?:\.gz)?$', re.IGNORECASE)
GFF_EXTENSION = re.compile(r'\.gff(?:\.gz)?$', re.IGNORECASE)


def setup_logging(debug: bool = False, log_file: Optional[str] = None, verbose: bool = False) -> logging.Logger:
    """
    Configure logging based on debug flag and optional log file.

    Args:
        debug: Enable debug output
        log_file: Write log to this file
        verbose: Include timestamps and levels in console output

    Returns:
        Configured root logger
    """
    if debug:
        log_level = logging.DEBUG
        log_format = '%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
    elif verbose:
        log_level = logging.INFO
        log_format = '%(asctime)s - %(levelname)s - %(message)s'
    else:
        log_level = logging.WARNING
        log_format = '%(levelname)s: %(message)s'

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Replace handlers from any earlier configuration
    logger.handlers = []

    # Warnings go to stderr so that report output on stdout stays clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if debug else logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'))
        logger.addHandler(file_handler)
        if not debug:
            logger.setLevel(logging.INFO)

    return logger


def dialect_from_filename(filename: str) -> Optional[Dialect]:
    """
    Infer the GFF dialect from a file name extension.

    Args:
        filename: Path to an annotation file

    Returns:
        Dialect.GTF for .gtf, Dialect.GFF3 for .gff3, None for .gff

    Raises:
        ValueError: If the extension is not a recognized GFF extension
    """
    if GTF_EXTENSION.search(filename):
        return Dialect.GTF
    if GFF3_EXTENSION.search(filename):
        return Dialect.GFF3
    if GFF_EXTENSION.search(filename):
        # could be any version, leave it to the pragma
        return None
    raise ValueError(f"File doesn't look like a GFF file: {filename}")


def open_to_read(filename: str) -> IO[str]:
    """
    Open a plain or gzip compressed text file for reading.

    Args:
        filename: Path to the file

    Returns:
        A text mode file handle

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not os.path.exists(filename):
        raise FileNotFoundError(f"Annotation file not found: {filename}")

    if filename.endswith('.gz'):
        return gzip.open(filename, 'rt')
    return open(filename, 'r')
