"""
Builds feature objects from the nine columns of a GFF, GTF, or GFF3 record.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Type

from gffparse.core.models import Dialect, SeqFeature, Strand
from gffparse.io.attributes import (
    GTFIdentity,
    parse_gff3_attributes,
    parse_gff_attributes,
    parse_gtf_attributes,
)


PHASES = ('0', '1', '2')
GENE_LIKE = re.compile(r'gene', re.IGNORECASE)
TRANSCRIPT_LIKE = re.compile(r'transcript|rna', re.IGNORECASE)
GENERIC_TRANSCRIPT = re.compile(r'^transcript$', re.IGNORECASE)
PROTEIN_CODING = re.compile(r'protein_coding', re.IGNORECASE)
RNA_LIKE = re.compile(r'rna|antisense|transcript|nonsense_mediated', re.IGNORECASE)


@dataclass
class BuiltRecord:
    """A feature built from one record, plus the GTF identifiers if any."""
    feature: SeqFeature
    identity: Optional[GTFIdentity] = None


def is_gene_like(primary_tag: Optional[str]) -> bool:
    return bool(primary_tag) and bool(GENE_LIKE.search(primary_tag))


def is_transcript_like(primary_tag: Optional[str]) -> bool:
    return bool(primary_tag) and bool(TRANSCRIPT_LIKE.search(primary_tag))


def _coordinate(value: str, column: str, fields: List[str]) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        logging.warning(f"Non-numeric {column} coordinate '{value}' for {fields[0]} {fields[2]}")
        return None


def _score(value: str) -> Optional[float]:
    try:
        return float(value)
    except ValueError:
        logging.warning(f"Non-numeric score '{value}' ignored")
        return None


def build_base_feature(fields: List[str], feature_class: Type = SeqFeature):
    """
    Create a feature from the eight positional columns of a record.

    A "." in the source, type, or score column leaves the field unset;
    phase is only set for 0, 1, or 2; any strand other than + or - is
    unknown.

    Args:
        fields: The nine columns of a GFF record
        feature_class: Class used to create the feature

    Returns:
        A new feature without attributes
    """
    seq_id, source, primary_tag, start, end, score, strand, phase = fields[:8]
    feature = feature_class(
        seq_id=seq_id,
        start=_coordinate(start, 'start', fields),
        end=_coordinate(end, 'end', fields),
        strand=Strand.from_symbol(strand) if strand in ('+', '-') else Strand.UNKNOWN,
        source=source if source != '.' else None,
        primary_tag=primary_tag if primary_tag != '.' else None,
    )
    if score != '.':
        feature.score = _score(score)
    if phase in PHASES:
        feature.phase = int(phase)
    return feature


def build_gff3_feature(fields: List[str], simplify: bool = False,
                       feature_class: Type = SeqFeature) -> BuiltRecord:
    """Build a feature from a GFF3 record."""
    feature = build_base_feature(fields, feature_class)
    attributes = parse_gff3_attributes(fields[8], simplify)
    if attributes.display_name is not None:
        feature.display_name = attributes.display_name
    if attributes.primary_id is not None:
        feature.primary_id = attributes.primary_id
    for tag, values in attributes.tags.items():
        for value in values:
            feature.add_tag_value(tag, value)
    return BuiltRecord(feature)


def _refine_transcript_type(feature, tags, original_source: Optional[str], simplify: bool) -> None:
    # make a generic "transcript" more specific from the biotype or old source
    if 'transcript_biotype' in tags:
        biotype = tags['transcript_biotype'][0]
        if simplify:
            del tags['transcript_biotype']
    elif 'gene_biotype' in tags:
        biotype = tags['gene_biotype'][0]
        if simplify:
            del tags['gene_biotype']
    else:
        biotype = original_source
    if not biotype:
        return
    if PROTEIN_CODING.search(biotype):
        feature.primary_tag = 'mRNA'
    elif RNA_LIKE.search(biotype):
        feature.primary_tag = biotype


def build_gtf_feature(fields: List[str], simplify: bool = False,
                      feature_class: Type = SeqFeature) -> BuiltRecord:
    """
    Build a feature from a GTF record, converting GTF ids to GFF3 conventions.

    Genes take their ID and Name from gene_id and gene_name. Transcripts
    take theirs from transcript_id and transcript_name and get a Parent tag
    pointing at the gene_id. Everything else (exons, CDS, UTRs, codons) gets
    a Parent tag pointing at the transcript_id.
    """
    feature = build_base_feature(fields, feature_class)
    attributes = parse_gtf_attributes(fields[8], simplify)
    identity = attributes.identity
    tags = attributes.tags

    # Ensembl puts the biotype in the source column and the real source in gene_source
    original_source = feature.source
    if 'gene_source' in tags:
        feature.source = tags['gene_source'][0]
        if simplify:
            del tags['gene_source']

    primary_tag = feature.primary_tag
    if is_gene_like(primary_tag):
        feature.primary_id = identity.gene_id
        feature.display_name = identity.gene_name
    elif is_transcript_like(primary_tag):
        feature.primary_id = identity.transcript_id
        feature.display_name = identity.transcript_name
        if identity.gene_id:
            feature.add_tag_value('Parent', identity.gene_id)
        if GENERIC_TRANSCRIPT.match(primary_tag):
            _refine_transcript_type(feature, tags, original_source, simplify)
    elif identity.transcript_id:
        feature.add_tag_value('Parent', identity.transcript_id)

    for tag, values in tags.items():
        for value in values:
            feature.add_tag_value(tag, value)
    return BuiltRecord(feature, identity)


def build_gff_feature(fields: List[str], feature_class: Type = SeqFeature) -> BuiltRecord:
    """Build a feature from a generic GFF1 or GFF2 record, tags kept as is."""
    feature = build_base_feature(fields, feature_class)
    for tag, values in parse_gff_attributes(fields[8]).items():
        for value in values:
            feature.add_tag_value(tag, value)
    return BuiltRecord(feature)


def build_feature(fields: List[str], dialect: Optional[Dialect], simplify: bool = False,
                  feature_class: Type = SeqFeature) -> BuiltRecord:
    """
    Build a feature with the attribute grammar of the given dialect.

    Args:
        fields: The nine columns of a record
        dialect: Dialect of the file; None or GFF1/GFF2 use the generic grammar
        simplify: Keep only the attributes needed for identity and parentage
        feature_class: Class used to create the feature

    Returns:
        BuiltRecord holding the feature
    """
    if dialect is Dialect.GFF3:
        return build_gff3_feature(fields, simplify, feature_class)
    if dialect is Dialect.GTF:
        return build_gtf_feature(fields, simplify, feature_class)
    return build_gff_feature(fields, feature_class)
