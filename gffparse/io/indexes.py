"""
Lookup indexes derived from the top-level features of a parsed file.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from gffparse.core.models import SeqFeature, Strand


class GeneIndex:
    """Name and sequence length indexes over top-level features."""

    def __init__(self):
        self.by_name: Dict[str, List[SeqFeature]] = defaultdict(list)
        self.seq_id_lengths: Dict[str, int] = {}

    def build(self, top_features: List[SeqFeature], sequence_regions: Optional[Dict[str, int]] = None) -> None:
        """
        Rebuild both indexes from scratch.

        Args:
            top_features: Top-level features, in file order
            sequence_regions: Lengths from ##sequence-region pragmas
        """
        self.by_name = defaultdict(list)
        self.seq_id_lengths = dict(sequence_regions or {})

        for feature in top_features:
            if feature.display_name:
                self.by_name[feature.display_name.lower()].append(feature)

            if feature.seq_id is None or feature.end is None:
                continue
            current = self.seq_id_lengths.get(feature.seq_id)
            if current is None or feature.end > current:
                self.seq_id_lengths[feature.seq_id] = feature.end

    def find_gene(self, name: str, id: Optional[str] = None, seq_id: Optional[str] = None,
                  start: Optional[int] = None, end: Optional[int] = None,
                  strand=None) -> Optional[SeqFeature]:
        """
        Find a top-level feature by name, confirmed by ID or coordinates.

        Args:
            name: Display name, matched case-insensitively
            id: Required primary ID; no name-only fallback when given
            seq_id: Chromosome for the coordinate check
            start: Start of the region the feature must overlap
            end: End of the region the feature must overlap
            strand: Strand the feature must be on, unknown by default

        Returns:
            The matching feature, or None
        """
        candidates = self.by_name.get(name.lower())
        if not candidates:
            return None

        if id:
            for candidate in candidates:
                if candidate.primary_id == id:
                    return candidate
            return None

        if seq_id and start is not None and end is not None:
            strand = Strand.from_symbol(strand)
            for candidate in candidates:
                if candidate.seq_id != seq_id or candidate.strand != strand:
                    continue
                if candidate.start is None or candidate.end is None:
                    continue
                if candidate.start <= end and candidate.end >= start:
                    return candidate
            return None

        if len(candidates) > 1:
            logging.warning(f"More than one gene named {name} found, using the first")
        return candidates[0]
