"""
Attribute (column 9) grammars for GFF3, GTF, and generic GFF1/GFF2 files.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import unquote_plus


GFF3_SIMPLE_TAGS = frozenset(['ID', 'Name', 'Parent'])
GTF_SIMPLE_TAGS = frozenset([
    'gene_id',
    'transcript_id',
    'gene_name',
    'transcript_name',
    'gene_source',
    'transcript_biotype',
])

CLAUSE_SEPARATOR = re.compile(r'\s*;\s*')
GTF_CLAUSE_SEPARATOR = '; '


@dataclass
class GFF3Attributes:
    """Decoded GFF3 attributes with ID and Name pulled out."""
    primary_id: Optional[str] = None
    display_name: Optional[str] = None
    tags: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class GTFIdentity:
    """Gene and transcript identifiers captured from a GTF record."""
    gene_id: Optional[str] = None
    gene_name: Optional[str] = None
    transcript_id: Optional[str] = None
    transcript_name: Optional[str] = None


@dataclass
class GTFAttributes:
    """Parsed GTF attributes: identifiers plus every other tag."""
    identity: GTFIdentity = field(default_factory=GTFIdentity)
    tags: Dict[str, List[str]] = field(default_factory=dict)


def unescape(text: str) -> str:
    """
    Decode GFF3 escapes: "+" becomes a space and %XX the character XX.

    >>> unescape('a%3Bb+c')
    'a;b c'
    """
    return unquote_plus(text, errors='replace')


def parse_gff3_attributes(text: str, simplify: bool = False) -> GFF3Attributes:
    """
    Parse a GFF3 attribute column of "tag=value1,value2;tag=value" clauses.

    Args:
        text: The ninth column of a GFF3 record
        simplify: Keep only the ID, Name and Parent tags

    Returns:
        GFF3Attributes with the first ID and Name values split out
    """
    attributes = GFF3Attributes()
    for clause in CLAUSE_SEPARATOR.split(text.strip()):
        tag, sep, value = clause.partition('=')
        if not sep:
            continue
        tag = unescape(tag)
        if simplify and tag not in GFF3_SIMPLE_TAGS:
            continue
        values = [unescape(v) for v in value.split(',')]

        if tag == 'Name':
            attributes.display_name = values[0]
        elif tag == 'ID':
            attributes.primary_id = values[0]
        else:
            attributes.tags.setdefault(tag, []).extend(values)
    return attributes


def parse_gtf_attributes(text: str, simplify: bool = False) -> GTFAttributes:
    """
    Parse a GTF attribute column of 'tag "value"; ' clauses.

    Values may contain spaces; all double quotes and semicolons are removed
    from them. The gene and transcript identifiers are captured separately
    from the remaining tags.

    Args:
        text: The ninth column of a GTF record
        simplify: Keep only identifier, source and transcript biotype tags

    Returns:
        GTFAttributes
    """
    attributes = GTFAttributes()
    identity = attributes.identity
    for clause in text.split(GTF_CLAUSE_SEPARATOR):
        tokens = clause.split()
        if not tokens:
            continue
        tag = tokens[0].strip(';')
        if not tag:
            continue
        if simplify and tag not in GTF_SIMPLE_TAGS:
            continue
        value = re.sub(r'[";]', '', ' '.join(tokens[1:]))

        if tag == 'gene_id':
            identity.gene_id = value
        elif tag == 'gene_name':
            identity.gene_name = value
        elif tag == 'transcript_id':
            identity.transcript_id = value
        elif tag == 'transcript_name':
            identity.transcript_name = value
        else:
            attributes.tags.setdefault(tag, []).append(value)
    return attributes


def parse_gff_attributes(text: str) -> Dict[str, List[str]]:
    """
    Parse a generic GFF1/GFF2 group column of "tag value" clauses.

    Values are kept verbatim, including any quotes.
    """
    tags = {}
    for clause in CLAUSE_SEPARATOR.split(text.strip()):
        bits = clause.split()
        if len(bits) < 2:
            continue
        tags.setdefault(bits[0], []).append(bits[1])
    return tags
