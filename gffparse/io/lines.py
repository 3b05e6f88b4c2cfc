"""
Classification of raw GFF lines into pragmas, comments, sequence and records.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


VERSION_PRAGMA = re.compile(r'^##gff-version\s+(\d\.?\d?)\s*$', re.IGNORECASE)
SEQUENCE_REGION_PRAGMA = re.compile(r'^##sequence-region', re.IGNORECASE)
FASTA_DIRECTIVE = re.compile(r'^##FASTA\s*$', re.IGNORECASE)
NUCLEOTIDES = re.compile(r'^[acgtn]+$', re.IGNORECASE)

GFF_COLUMNS = 9


class LineKind(Enum):
    """Enumeration of the kinds of line found in a GFF file."""
    VERSION_PRAGMA = "version_pragma"
    CLOSE_MARKER = "close_marker"
    SEQUENCE_REGION = "sequence_region"
    COMMENT = "comment"
    BLANK = "blank"
    FASTA_HEADER = "fasta_header"
    FASTA_SEQUENCE = "fasta_sequence"
    FEATURE = "feature"
    MALFORMED = "malformed"


@dataclass
class ClassifiedLine:
    """Represents one classified line and whatever was extracted from it."""
    kind: LineKind
    text: str
    version: Optional[str] = None
    seq_id: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None
    fields: Optional[List[str]] = None

    @property
    def is_fasta_directive(self) -> bool:
        return self.kind == LineKind.COMMENT and bool(FASTA_DIRECTIVE.match(self.text))


def _sequence_region(line: str) -> ClassifiedLine:
    # ##sequence-region seqid start end; a bad pragma keeps seq_id None
    bits = line.split()
    if len(bits) >= 4 and bits[2].isdigit() and bits[3].isdigit():
        return ClassifiedLine(LineKind.SEQUENCE_REGION, line, seq_id=bits[1],
                              start=int(bits[2]), end=int(bits[3]))
    return ClassifiedLine(LineKind.SEQUENCE_REGION, line)


def classify_line(line: str) -> ClassifiedLine:
    """
    Classify one line of a GFF, GTF, or GFF3 file.

    The first matching rule wins: version pragma, "###" close marker,
    sequence-region pragma, other comment or pragma, blank line, fasta
    header, fasta sequence, and finally a tab-delimited feature record.

    Args:
        line: A raw line, with or without its line ending

    Returns:
        A ClassifiedLine; lines that are not exactly 9 tab-delimited
        columns come back as LineKind.MALFORMED
    """
    line = line.rstrip('\r\n')

    match = VERSION_PRAGMA.match(line)
    if match:
        return ClassifiedLine(LineKind.VERSION_PRAGMA, line, version=match.group(1))
    if line == '###':
        return ClassifiedLine(LineKind.CLOSE_MARKER, line)
    if SEQUENCE_REGION_PRAGMA.match(line):
        return _sequence_region(line)
    if line.startswith('#'):
        return ClassifiedLine(LineKind.COMMENT, line)
    if not line:
        return ClassifiedLine(LineKind.BLANK, line)
    if line.startswith('>'):
        return ClassifiedLine(LineKind.FASTA_HEADER, line)
    if NUCLEOTIDES.match(line):
        return ClassifiedLine(LineKind.FASTA_SEQUENCE, line)

    fields = line.split('\t')
    if len(fields) != GFF_COLUMNS:
        return ClassifiedLine(LineKind.MALFORMED, line)
    return ClassifiedLine(LineKind.FEATURE, line, fields=fields)
