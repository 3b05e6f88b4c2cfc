"""
Parser for GFF3, GTF, and generic GFF annotation files.

Each line is turned into a feature object. For GFF3 and GTF files the
features can be assembled into nested gene models, typically
gene => transcript => (exon, CDS, etc), using ID and Parent tags for GFF3
and gene_id and transcript_id tags for GTF.

For GFF3 files, any feature without a Parent tag is a top-level feature.
Children whose parent has not been seen yet are kept as orphans and
re-associated with their parents after the whole file is read; multiple
parentage, e.g. exons shared between transcripts, is supported. GTF files
often omit gene and transcript lines, so missing gene and transcript
parents are created from the identifiers of their children.

Embedded fasta sequence is ignored, as are most comment and pragma lines.
"""

import importlib
import itertools
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import IO, Dict, Iterator, List, Optional, Type, Union

from gffparse.core.models import Dialect, SeqFeature
from gffparse.core.utils import dialect_from_filename, open_to_read
from gffparse.io.attributes import GTFIdentity, unescape as unescape_text
from gffparse.io.builder import BuiltRecord, build_feature, is_gene_like, is_transcript_like
from gffparse.io.indexes import GeneIndex
from gffparse.io.lines import GFF_COLUMNS, LineKind, classify_line


@dataclass
class Orphan:
    """A feature waiting for parents that were not loaded when it was read."""
    feature: SeqFeature
    parents: List[str] = field(default_factory=list)


def load_feature_class(feature_class: Union[str, Type, None]) -> Type:
    """
    Resolve the class used to create features.

    Args:
        feature_class: None for SeqFeature, a class, or an import path such
            as "package.module.Class" or "package.module:Class"

    Returns:
        The feature class

    Raises:
        ImportError: If the module or class cannot be loaded
        TypeError: If the resolved object is not a class
    """
    if feature_class is None:
        return SeqFeature
    if isinstance(feature_class, str):
        module_name, sep, class_name = feature_class.partition(':')
        if not sep:
            module_name, _, class_name = feature_class.rpartition('.')
        if not module_name or not class_name:
            raise ImportError(f"Cannot load feature class '{feature_class}'")
        module = importlib.import_module(module_name)
        try:
            feature_class = getattr(module, class_name)
        except AttributeError as e:
            raise ImportError(f"Module {module_name} has no feature class {class_name}") from e
    if not isinstance(feature_class, type):
        raise TypeError(f"Feature class must be a class, not {feature_class!r}")
    return feature_class


class GFFParser:
    """
    Parser for GFF3, GTF, and generic GFF files.

    Features may be read one line at a time with next_feature(), or as
    assembled top-level features with next_top_feature() or top_features().
    Mixing the two styles on one parser is not supported.
    """

    def __init__(self, file: Optional[str] = None, version=None, skip=None, simplify: bool = False,
                 feature_class: Union[str, Type, None] = None, handle: Optional[IO[str]] = None):
        """
        Initialize the GFF parser.

        Args:
            file: Path to a .gff, .gtf, or .gff3 file, optionally gzipped
            version: GFF version, one of 1, 2, 2.5 (GTF), or 3
            skip: primary_tag values to drop while parsing, e.g. CDS
            simplify: Keep only the attributes needed for names and parentage
            feature_class: Alternative class (or import path) for features
            handle: An already open text stream to parse instead of a file
        """
        self.feature_class = load_feature_class(feature_class)
        self.filename = None
        self.index = GeneIndex()

        self._handle = None
        self._owns_handle = False
        self._lines = None
        self._line_num = 0
        self._version = None
        self._version_given = False
        self._skip_types = set()
        self._simplify = bool(simplify)

        self._loaded: Dict[str, SeqFeature] = {}
        self._synthetic_genes: Dict[str, SeqFeature] = {}
        self._orphans: List[Orphan] = []
        self._unparented: List[SeqFeature] = []
        self._duplicate_ids = Counter()
        self._comments: List[str] = []
        self._sequence_regions: Dict[str, int] = {}
        self._top_features: List[SeqFeature] = []
        self._top_cursor = 0
        self._in_fasta = False
        self._eof = False
        self._parsed = False

        if skip:
            self.skip(*skip)
        if version is not None:
            self.version = version
        if file:
            self.open_file(file)
        elif handle is not None:
            self.fh(handle)

    # Parser behavior

    @property
    def version(self) -> Optional[Dialect]:
        """The dialect of the current file, or None if not yet known."""
        return self._version

    @version.setter
    def version(self, value) -> None:
        if self._set_version(value):
            self._version_given = True

    def _set_version(self, value) -> bool:
        dialect = Dialect.from_value(value)
        if dialect is None:
            logging.warning(f"Ignoring unsupported GFF version {value!r}, must be 1, 2, 2.5, or 3")
            return False
        if self._version is not None and self._version is not dialect:
            logging.warning(f"GFF version information (extension, pragma, etc) mismatch: "
                            f"compare {self._version.value} with {dialect.value}, using {dialect.value}")
        self._version = dialect
        return True

    @property
    def simplify(self) -> bool:
        """Whether only identity and parentage attributes are kept."""
        return self._simplify

    @simplify.setter
    def simplify(self, value: bool) -> None:
        self._simplify = bool(value)

    def skip(self, *types: str) -> List[str]:
        """
        Add primary_tag values to be dropped during parsing.

        Only exact matches are skipped. Best called before parsing begins.

        Returns:
            All primary_tag values currently skipped
        """
        self._skip_types.update(types)
        return sorted(self._skip_types)

    def open_file(self, filename: str) -> bool:
        """
        Open a GFF file for parsing.

        The version is guessed from the extension (.gtf or .gff3; .gff is
        left open) unless one was given explicitly, and is then overridden by
        a ##gff-version pragma on the first line, if there is one.

        Args:
            filename: Path to a .gff, .gtf, or .gff3 file, optionally gzipped

        Raises:
            ValueError: If the file name or extension is not usable
            OSError: If the file cannot be opened
        """
        if not filename:
            raise ValueError("No file name passed")
        dialect = dialect_from_filename(filename)
        handle = open_to_read(filename)

        # an explicit version wins over the extension
        if dialect is not None and not self._version_given:
            self._set_version(dialect)
        self.filename = filename
        self._bind(handle, owns_handle=True)
        return True

    def fh(self, handle: Optional[IO[str]] = None) -> Optional[IO[str]]:
        """
        Get the bound stream, or bind an already open line-oriented stream.

        A newly bound stream is probed for a ##gff-version pragma on its
        first line, as for open_file().
        """
        if handle is not None:
            self._bind(handle, owns_handle=False)
        return self._handle

    def _bind(self, handle: IO[str], owns_handle: bool) -> None:
        self._handle = handle
        self._owns_handle = owns_handle
        self._eof = False
        self._in_fasta = False
        self._line_num = 0

        lines = iter(handle)
        first = next(lines, None)
        if first is not None:
            classified = classify_line(first)
            if classified.kind == LineKind.VERSION_PRAGMA:
                # the pragma is assumed to be right, over the extension
                self._set_version(classified.version)
                self._line_num = 1
            else:
                lines = itertools.chain([first], lines)
        self._lines = lines

    def _require_stream(self) -> None:
        if self._lines is None:
            raise RuntimeError("No GFF file loaded to parse!")

    def close(self) -> None:
        """Stop reading, closing the file if the parser opened it."""
        self._eof = True
        if self._owns_handle and self._handle is not None:
            self._handle.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    # Feature retrieval

    def next_feature(self) -> Optional[SeqFeature]:
        """
        Return the next feature in the file, without parent-child assembly.

        Pragmas, comments, blank lines, and sequence are skipped.

        Returns:
            The next feature, or None at the end of the file
        """
        self._require_stream()
        record = self._next_record()
        return record.feature if record is not None else None

    def iter_features(self) -> Iterator[SeqFeature]:
        """Yield the remaining features one at a time, unassembled."""
        return iter(self.next_feature, None)

    def _next_record(self) -> Optional[BuiltRecord]:
        if self._eof:
            return None

        for line in self._lines:
            self._line_num += 1
            if self._in_fasta:
                continue

            classified = classify_line(line)
            kind = classified.kind
            if kind == LineKind.VERSION_PRAGMA:
                self._set_version(classified.version)
            elif kind == LineKind.SEQUENCE_REGION:
                if classified.seq_id is None:
                    logging.warning(f"Line {self._line_num}: malformed sequence-region pragma: {classified.text}")
                else:
                    # only the stop coordinate is needed
                    self._sequence_regions[classified.seq_id] = classified.end
            elif kind == LineKind.COMMENT:
                self._comments.append(classified.text)
                if classified.is_fasta_directive:
                    self._in_fasta = True
            elif kind == LineKind.MALFORMED:
                logging.warning(f"Line {self._line_num}: does not have {GFF_COLUMNS} columns, skipping")
            elif kind == LineKind.FEATURE:
                record = self._build(classified.fields)
                if record is not None:
                    return record

        self.close()
        return None

    def _build(self, fields: List[str]) -> Optional[BuiltRecord]:
        if fields[2] in self._skip_types:
            return None
        return build_feature(fields, self._version, self._simplify, self.feature_class)

    def from_gff_string(self, string: str) -> Optional[SeqFeature]:
        """
        Parse one GFF, GTF, or GFF3 line into a feature.

        The line is parsed with the parser's current version and options,
        independently of any open file.

        Returns:
            A feature, or None if the line is empty, malformed, or skipped
        """
        string = string.rstrip('\r\n') if string else string
        if not string:
            logging.warning("A GFF line must be passed to from_gff_string")
            return None
        fields = string.split('\t')
        if len(fields) != GFF_COLUMNS:
            logging.warning(f"Line does not have {GFF_COLUMNS} columns: {string}")
            return None
        record = self._build(fields)
        return record.feature if record is not None else None

    def next_top_feature(self) -> Optional[SeqFeature]:
        """
        Return the next top-level feature with its children assembled.

        The whole file is parsed on the first call.

        Returns:
            The next top-level feature, or None when all have been returned
        """
        self._require_stream()
        self.parse_file()
        if self._top_cursor >= len(self._top_features):
            return None
        feature = self._top_features[self._top_cursor]
        self._top_cursor += 1
        return feature

    def top_features(self) -> List[SeqFeature]:
        """Return all top-level features, parsing the file if needed."""
        self._require_stream()
        self.parse_file()
        return list(self._top_features)

    # Assembly

    def parse_file(self) -> bool:
        """
        Parse the whole file into memory and assemble the feature hierarchy.

        Each feature is checked for parentage. Children with a Parent tag are
        associated with their parent, or put in the orphanage. Orphans are
        checked a final time for parents once all lines are read. Features
        without a parent are top-level features. Repeated calls do nothing.
        """
        self._require_stream()
        if self._parsed:
            return True

        start_time = time.time()
        label = self._version.label if self._version else 'GFF'
        logging.info(f"Parsing {label} format file: {self.filename or self._handle}")

        while True:
            record = self._next_record()
            if record is None:
                break
            self._assemble(record)

        self._resolve_orphans()
        if self._duplicate_ids:
            logging.warning("The GFF file has errors: the following IDs were duplicated: "
                            + ', '.join(self._duplicate_ids))

        self.index.build(self._top_features, self._sequence_regions)
        self._parsed = True

        elapsed = time.time() - start_time
        logging.info(f"Finished parsing in {elapsed:.2f}s: {len(self._top_features)} top-level features, "
                     f"{len(self._orphans)} orphans")
        return True

    def _assemble(self, record: BuiltRecord) -> None:
        feature = record.feature
        feature_id = feature.primary_id
        if feature_id:
            if feature_id in self._loaded:
                # Ensembl recycles CDS IDs across exons
                if feature.primary_tag != 'CDS':
                    self._duplicate_ids[feature_id] += 1
                if not feature.has_tag('Parent'):
                    # duplicate without a parent: malformed, keep it as an orphan
                    self._orphans.append(Orphan(feature))
                    return
            else:
                self._loaded[feature_id] = feature

        if not feature.has_tag('Parent'):
            self._top_features.append(feature)
            return

        pending = []
        attached = False
        unparented = False
        for parent_id in feature.get_tag_values('Parent'):
            parent = self._loaded.get(parent_id)
            if parent is not None:
                self._attach(parent_id, parent, feature)
                attached = True
            elif self._version is Dialect.GTF:
                if is_gene_like(feature.primary_tag):
                    unparented = True
                else:
                    self._make_ancestry(record, parent_id)
                    attached = True
            else:
                # parent may not be loaded yet
                pending.append(parent_id)

        if pending:
            self._orphans.append(Orphan(feature, pending))
        if unparented and not attached:
            logging.warning(f"Line {self._line_num}: gene {feature_id} has a parent that is not "
                            f"in the file, keeping it as a top-level feature")
            self._unparented.append(feature)
            self._top_features.append(feature)

    def _attach(self, parent_id: str, parent, child) -> None:
        parent.add_child(child)
        # boundaries matter for GTF genes that were never defined
        if parent.widen(child) and parent_id in self._synthetic_genes:
            self._synthetic_genes[parent_id].widen(parent)

    def _make_ancestry(self, record: BuiltRecord, parent_id: str) -> None:
        """Create the missing GTF gene, and transcript if needed, for a feature."""
        feature = record.feature
        identity = record.identity or GTFIdentity()

        if is_transcript_like(feature.primary_tag):
            gene = self._make_gene_parent(feature, identity, parent_id)
            self._loaded[gene.primary_id] = gene
            gene.add_child(feature)
            self._top_features.append(gene)
            return

        gene_id = identity.gene_id or identity.gene_name or parent_id
        gene = self._loaded.get(gene_id)
        if gene is None:
            gene = self._make_gene_parent(feature, identity, parent_id)
            self._loaded[gene.primary_id] = gene
            self._top_features.append(gene)
        else:
            gene.widen(feature)

        transcript = self._make_rna_parent(feature, identity, parent_id)
        self._loaded[transcript.primary_id] = transcript
        transcript.add_child(feature)
        gene.add_child(transcript)
        self._synthetic_genes[transcript.primary_id] = gene

    def _new_parent(self, feature, primary_tag: str):
        return self.feature_class(
            seq_id=feature.seq_id,
            start=feature.start,
            end=feature.end,
            strand=feature.strand,
            source=feature.source,
            primary_tag=primary_tag,
        )

    def _make_gene_parent(self, feature, identity: GTFIdentity, parent_id: str):
        gene = self._new_parent(feature, 'gene')
        gene.primary_id = identity.gene_id or identity.gene_name or parent_id
        gene.display_name = identity.gene_name or identity.gene_id or parent_id
        return gene

    def _make_rna_parent(self, feature, identity: GTFIdentity, parent_id: str):
        # probably an mRNA, but there is no way to know
        rna = self._new_parent(feature, 'transcript')
        rna.primary_id = identity.transcript_id or identity.transcript_name or parent_id
        rna.display_name = identity.transcript_name or identity.transcript_id or parent_id
        return rna

    def _resolve_orphans(self) -> None:
        if not self._orphans:
            return

        remaining = []
        for orphan in self._orphans:
            reunited = False
            for parent_id in orphan.parents:
                parent = self._loaded.get(parent_id)
                if parent is not None:
                    parent.add_child(orphan.feature)
                    reunited = True
            if not reunited:
                remaining.append(orphan)
        self._orphans = remaining

        if remaining:
            logging.warning(f"{len(remaining)} features could not be associated with reported parents!")

    # Other methods

    def find_gene(self, name: Optional[str] = None, id: Optional[str] = None, seq_id: Optional[str] = None,
                  start: Optional[int] = None, end: Optional[int] = None, strand=None,
                  **aliases) -> Optional[SeqFeature]:
        """
        Find a top-level gene by name, loading the file first if needed.

        Genes with a matching name are confirmed by a matching ID or by
        overlapping coordinates on the same strand when those are given.
        Otherwise the first gene with the name is returned.

        Args:
            name: Gene name (alias display_name), case-insensitive
            id: Primary ID (alias primary_id)
            seq_id: Chromosome (alias chrom)
            start: Region start
            end: Region end (alias stop)
            strand: Region strand, +, -, 1, -1, or a Strand

        Returns:
            The matching gene, or None
        """
        known = {'display_name', 'primary_id', 'chrom', 'stop'}
        unknown = set(aliases) - known
        if unknown:
            raise TypeError(f"Unexpected find_gene options: {', '.join(sorted(unknown))}")
        name = name or aliases.get('display_name')
        id = id or aliases.get('primary_id')
        seq_id = seq_id or aliases.get('chrom')
        end = end if end is not None else aliases.get('stop')

        self._require_stream()
        if not name:
            logging.warning("A name is required for find_gene")
            return None
        self.parse_file()
        return self.index.find_gene(name, id=id, seq_id=seq_id, start=start, end=end, strand=strand)

    @staticmethod
    def unescape(text: str) -> str:
        """Unescape GFF3 reserved characters, e.g. %3B for ';'."""
        return unescape_text(text)

    def orphans(self) -> List[SeqFeature]:
        """Features whose declared parents could not be found."""
        return [orphan.feature for orphan in self._orphans]

    def unparented(self) -> List[SeqFeature]:
        """GTF gene-like features whose parent is missing; no ancestor was made for them."""
        return list(self._unparented)

    def duplicate_ids(self) -> Dict[str, int]:
        """IDs seen more than once (CDS excluded) and how many extra times."""
        return dict(self._duplicate_ids)

    def comments(self) -> List[str]:
        """Comment and pragma lines from the file."""
        return list(self._comments)

    def seq_ids(self) -> List[str]:
        """Names of the reference sequences in the file."""
        return list(self.seq_id_lengths())

    def seq_id_lengths(self) -> Dict[str, int]:
        """
        Lengths of the reference sequences, from ##sequence-region pragmas
        or the greatest end of the top-level features once the file is parsed.
        """
        if self._parsed:
            return dict(self.index.seq_id_lengths)
        return dict(self._sequence_regions)
