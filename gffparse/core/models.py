"""
Data models for parsed annotation features.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Union

from Bio.SeqFeature import SeqFeature as BioSeqFeature
from Bio.SeqFeature import SimpleLocation


class Strand(Enum):
    """Enumeration of feature strands."""
    FORWARD = 1
    REVERSE = -1
    UNKNOWN = 0

    @classmethod
    def from_symbol(cls, symbol) -> 'Strand':
        """Convert a GFF strand column or a numeric strand to a Strand."""
        if isinstance(symbol, Strand):
            return symbol
        if symbol in ('+', 1, '1', '+1'):
            return cls.FORWARD
        if symbol in ('-', -1, '-1'):
            return cls.REVERSE
        return cls.UNKNOWN

    @property
    def symbol(self) -> str:
        return {1: '+', -1: '-', 0: '.'}[self.value]


class Dialect(Enum):
    """Enumeration of the GFF dialects understood by the parser."""
    GFF1 = "1"
    GFF2 = "2"
    GTF = "2.5"
    GFF3 = "3"

    @classmethod
    def from_value(cls, value: Union[str, int, float, 'Dialect', None]) -> Optional['Dialect']:
        """
        Look up a dialect from a version number.

        Args:
            value: A version such as 3, "3", "3.0", 2.5 or a Dialect

        Returns:
            The matching Dialect, or None if the value is not a known version
        """
        if value is None:
            return None
        if isinstance(value, Dialect):
            return value
        text = str(value).strip()
        if text.endswith('.0'):
            text = text[:-2]
        for dialect in cls:
            if dialect.value == text:
                return dialect
        return None

    @property
    def label(self) -> str:
        if self is Dialect.GFF3:
            return 'GFF3'
        if self is Dialect.GTF:
            return 'GTF'
        return 'GFF'


@dataclass(eq=False)
class SeqFeature:
    """
    Represents one annotation feature, possibly with nested child features.

    A child may be held by more than one parent (GFF3 multiple parentage);
    the same object is shared rather than copied, so features compare by
    identity.
    """
    seq_id: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None
    strand: Strand = Strand.UNKNOWN
    source: Optional[str] = None
    primary_tag: Optional[str] = None
    primary_id: Optional[str] = None
    display_name: Optional[str] = None
    score: Optional[float] = None
    phase: Optional[int] = None
    tags: Dict[str, List[str]] = field(default_factory=dict)
    children: List['SeqFeature'] = field(default_factory=list)

    def __post_init__(self):
        self.strand = Strand.from_symbol(self.strand)

    def add_tag_value(self, tag: str, value: str) -> None:
        """Append a value to a repeatable tag."""
        self.tags.setdefault(tag, []).append(value)

    def get_tag_values(self, tag: str) -> List[str]:
        return list(self.tags.get(tag, []))

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def remove_tag(self, tag: str) -> List[str]:
        return self.tags.pop(tag, [])

    def get_all_tags(self) -> List[str]:
        return list(self.tags)

    def add_child(self, child: 'SeqFeature') -> None:
        self.children.append(child)

    def get_children(self) -> List['SeqFeature']:
        return list(self.children)

    def widen(self, other: 'SeqFeature') -> bool:
        """
        Expand this feature's span to the union with another feature's span.

        Returns:
            True if start or end changed
        """
        changed = False
        if other.start is not None and (self.start is None or other.start < self.start):
            self.start = other.start
            changed = True
        if other.end is not None and (self.end is None or other.end > self.end):
            self.end = other.end
            changed = True
        return changed

    def iter_descendants(self) -> Iterator['SeqFeature']:
        """Yield every child feature depth-first, in encounter order."""
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def to_seqfeature(self) -> BioSeqFeature:
        """
        Convert this feature (without its children) to a Biopython SeqFeature.

        Coordinates become a 0-based half-open SimpleLocation. ID, Name,
        source, score and phase are carried over as qualifiers next to the
        feature's own tags.
        """
        location = None
        if self.start is not None and self.end is not None:
            low, high = sorted((self.start, self.end))
            strand = None if self.strand is Strand.UNKNOWN else self.strand.value
            location = SimpleLocation(low - 1, high, strand=strand)

        qualifiers = {tag: list(values) for tag, values in self.tags.items()}
        if self.primary_id is not None:
            qualifiers['ID'] = [self.primary_id]
        if self.display_name is not None:
            qualifiers['Name'] = [self.display_name]
        if self.source is not None:
            qualifiers['source'] = [self.source]
        if self.score is not None:
            qualifiers['score'] = [str(self.score)]
        if self.phase is not None:
            qualifiers['phase'] = [str(self.phase)]

        return BioSeqFeature(
            location=location,
            type=self.primary_tag or '',
            id=self.primary_id or '<unknown id>',
            qualifiers=qualifiers,
        )
