"""
gffparse - parse GFF3, GTF, and GFF annotation files into nested features.
"""

__version__ = "0.1.0"

from gffparse.core.models import Dialect, SeqFeature, Strand
from gffparse.io.gff_parser import GFFParser

__all__ = ["Dialect", "GFFParser", "SeqFeature", "Strand", "__version__"]
