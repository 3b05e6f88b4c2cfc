#!/usr/bin/env python3
"""
Tests for building features from GFF, GTF, and GFF3 records.
"""

import unittest
from gffparse.core.models import Dialect, SeqFeature, Strand
from gffparse.io import builder


def fields(line):
    return line.split("\t")


class BaseFeatureTests(unittest.TestCase):
    """Test cases for the positional columns."""

    def test_positional_columns(self):
        """Test that positional columns become feature fields."""
        feature = builder.build_base_feature(fields("chr1\thavana\tCDS\t100\t200\t12.5\t-\t2\t."))
        self.assertEqual(feature.seq_id, "chr1")
        self.assertEqual(feature.source, "havana")
        self.assertEqual(feature.primary_tag, "CDS")
        self.assertEqual(feature.start, 100)
        self.assertEqual(feature.end, 200)
        self.assertEqual(feature.score, 12.5)
        self.assertEqual(feature.strand, Strand.REVERSE)
        self.assertEqual(feature.phase, 2)

    def test_dots_are_unset(self):
        """Test that '.' leaves source, type, score, and phase unset."""
        feature = builder.build_base_feature(fields("chr1\t.\t.\t1\t10\t.\t.\t.\t."))
        self.assertIsNone(feature.source)
        self.assertIsNone(feature.primary_tag)
        self.assertIsNone(feature.score)
        self.assertIsNone(feature.phase)
        self.assertEqual(feature.strand, Strand.UNKNOWN)

    def test_odd_strand_and_phase(self):
        """Test that unusual strand and phase values are ignored."""
        feature = builder.build_base_feature(fields("chr1\tsrc\texon\t1\t10\t.\t?\t3\t."))
        self.assertEqual(feature.strand, Strand.UNKNOWN)
        self.assertIsNone(feature.phase)

    def test_inverted_span_kept(self):
        """Test that an end before the start is not corrected."""
        feature = builder.build_base_feature(fields("chr1\tsrc\texon\t50\t10\t.\t+\t.\t."))
        self.assertEqual((feature.start, feature.end), (50, 10))

    def test_non_numeric_coordinate(self):
        """Test that a non-numeric coordinate is warned about and left unset."""
        with self.assertLogs(level='WARNING'):
            feature = builder.build_base_feature(fields("chr1\tsrc\texon\tone\t10\t.\t+\t.\t."))
        self.assertIsNone(feature.start)
        self.assertEqual(feature.end, 10)


class GFF3BuilderTests(unittest.TestCase):
    """Test cases for GFF3 records."""

    def test_gff3_feature(self):
        """Test ID, Name, and Parent handling."""
        record = builder.build_feature(
            fields("1\ttest\tmRNA\t1\t500\t.\t+\t.\tID=mRNA1;Name=tx%3B1;Parent=gene1"), Dialect.GFF3)
        feature = record.feature
        self.assertEqual(feature.primary_id, "mRNA1")
        self.assertEqual(feature.display_name, "tx;1")
        self.assertEqual(feature.get_tag_values("Parent"), ["gene1"])
        self.assertIsNone(record.identity)


class GTFBuilderTests(unittest.TestCase):
    """Test cases for GTF records and their post-processing."""

    def build(self, primary_tag, attributes, source="ensembl", simplify=False):
        line = f"1\t{source}\t{primary_tag}\t11869\t14409\t.\t+\t.\t{attributes}"
        return builder.build_feature(fields(line), Dialect.GTF, simplify=simplify).feature

    def test_gene(self):
        """Test that genes take their ID and name from gene_id and gene_name."""
        gene = self.build("gene", 'gene_id "G1"; gene_name "DDX11L1"; gene_biotype "pseudogene";')
        self.assertEqual(gene.primary_id, "G1")
        self.assertEqual(gene.display_name, "DDX11L1")
        self.assertFalse(gene.has_tag("Parent"))
        self.assertEqual(gene.get_tag_values("gene_biotype"), ["pseudogene"])

    def test_transcript_parent_and_mrna(self):
        """Test that a protein coding transcript becomes an mRNA under its gene."""
        transcript = self.build(
            "transcript", 'gene_id "G1"; transcript_id "T1"; transcript_name "T-201"; '
                          'transcript_biotype "protein_coding";')
        self.assertEqual(transcript.primary_tag, "mRNA")
        self.assertEqual(transcript.primary_id, "T1")
        self.assertEqual(transcript.display_name, "T-201")
        self.assertEqual(transcript.get_tag_values("Parent"), ["G1"])
        self.assertEqual(transcript.get_tag_values("transcript_biotype"), ["protein_coding"])

    def test_transcript_rna_biotype(self):
        """Test that an RNA biotype becomes the primary tag verbatim."""
        transcript = self.build("transcript", 'gene_id "G1"; transcript_id "T1"; transcript_biotype "lncRNA";')
        self.assertEqual(transcript.primary_tag, "lncRNA")

    def test_transcript_gene_biotype_fallback(self):
        """Test that gene_biotype is used when transcript_biotype is missing."""
        transcript = self.build("transcript", 'gene_id "G1"; transcript_id "T1"; gene_biotype "protein_coding";')
        self.assertEqual(transcript.primary_tag, "mRNA")

    def test_transcript_source_fallback(self):
        """Test that the original source column is used as the biotype last."""
        transcript = self.build("transcript", 'gene_id "G1"; transcript_id "T1"; gene_source "havana";',
                                source="processed_transcript")
        self.assertEqual(transcript.source, "havana")
        self.assertEqual(transcript.primary_tag, "processed_transcript")

        transcript = self.build("transcript", 'gene_id "G1"; transcript_id "T1";', source="protein_coding")
        self.assertEqual(transcript.primary_tag, "mRNA")

    def test_specific_transcript_type_kept(self):
        """Test that an already specific type is not refined."""
        transcript = self.build("mRNA", 'gene_id "G1"; transcript_id "T1"; transcript_biotype "lncRNA";')
        self.assertEqual(transcript.primary_tag, "mRNA")

    def test_exon_parent(self):
        """Test that other features point at their transcript."""
        exon = self.build("exon", 'gene_id "G1"; transcript_id "T1"; exon_number "1";')
        self.assertIsNone(exon.primary_id)
        self.assertEqual(exon.get_tag_values("Parent"), ["T1"])
        self.assertEqual(exon.get_tag_values("exon_number"), ["1"])
        self.assertFalse(exon.has_tag("gene_id"))

    def test_simplify_drops_consumed_tags(self):
        """Test that simplify removes gene_source and consumed biotypes."""
        transcript = self.build(
            "transcript", 'gene_id "G1"; transcript_id "T1"; gene_source "ensembl"; '
                          'transcript_biotype "protein_coding"; exon_number "1";', simplify=True)
        self.assertEqual(transcript.source, "ensembl")
        self.assertEqual(transcript.primary_tag, "mRNA")
        self.assertEqual(transcript.get_all_tags(), ["Parent"])

    def test_identity_returned(self):
        """Test that the GTF identifiers are returned with the feature."""
        record = builder.build_feature(
            fields('1\ts\texon\t1\t10\t.\t+\t.\tgene_id "G1"; transcript_id "T1"; gene_name "ABC";'), Dialect.GTF)
        self.assertEqual(record.identity.gene_id, "G1")
        self.assertEqual(record.identity.gene_name, "ABC")


class GenericBuilderTests(unittest.TestCase):
    """Test cases for generic GFF records."""

    def test_no_parent_semantics(self):
        """Test that generic records keep tags as is."""
        record = builder.build_feature(fields("1\ts\texon\t1\t10\t.\t+\t.\tGroup g1 ; ID x"), None)
        self.assertIsNone(record.feature.primary_id)
        self.assertEqual(record.feature.get_tag_values("ID"), ["x"])
        self.assertEqual(record.feature.get_tag_values("Group"), ["g1"])

    def test_feature_class(self):
        """Test that an alternative feature class is used."""
        class Custom(SeqFeature):
            pass

        record = builder.build_feature(fields("1\ts\texon\t1\t10\t.\t+\t.\t."), Dialect.GFF2, feature_class=Custom)
        self.assertIsInstance(record.feature, Custom)


if __name__ == '__main__':
    unittest.main()
