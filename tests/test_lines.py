#!/usr/bin/env python3
"""
Tests for GFF line classification.
"""

import unittest
from gffparse.io.lines import LineKind, classify_line


class LineClassifierTests(unittest.TestCase):
    """Test cases for classify_line."""

    def test_version_pragma(self):
        """Test that version pragmas are recognized with their value."""
        line = classify_line("##gff-version 3\n")
        self.assertEqual(line.kind, LineKind.VERSION_PRAGMA)
        self.assertEqual(line.version, "3")

        line = classify_line("##GFF-VERSION   2.5  ")
        self.assertEqual(line.kind, LineKind.VERSION_PRAGMA)
        self.assertEqual(line.version, "2.5")

    def test_long_version_is_a_comment(self):
        """Test that a version with more than one decimal digit is only a comment."""
        line = classify_line("##gff-version 3.1.26")
        self.assertEqual(line.kind, LineKind.COMMENT)

    def test_close_marker(self):
        """Test the ### subfeature close marker."""
        self.assertEqual(classify_line("###").kind, LineKind.CLOSE_MARKER)

    def test_sequence_region(self):
        """Test a well formed sequence-region pragma."""
        line = classify_line("##sequence-region chr1 1 1000")
        self.assertEqual(line.kind, LineKind.SEQUENCE_REGION)
        self.assertEqual(line.seq_id, "chr1")
        self.assertEqual(line.start, 1)
        self.assertEqual(line.end, 1000)

    def test_malformed_sequence_region(self):
        """Test that a bad sequence-region pragma has no seq_id."""
        for text in ("##sequence-region chr1 1", "##sequence-region chr1 a 1000", "##sequence-region"):
            line = classify_line(text)
            self.assertEqual(line.kind, LineKind.SEQUENCE_REGION)
            self.assertIsNone(line.seq_id)

    def test_comments(self):
        """Test comment and other pragma lines."""
        self.assertEqual(classify_line("# a comment").kind, LineKind.COMMENT)
        self.assertEqual(classify_line("##species human").kind, LineKind.COMMENT)
        line = classify_line("##FASTA")
        self.assertEqual(line.kind, LineKind.COMMENT)
        self.assertTrue(line.is_fasta_directive)
        self.assertFalse(classify_line("# FASTA").is_fasta_directive)

    def test_blank_and_fasta(self):
        """Test blank lines, fasta headers, and fasta sequence."""
        self.assertEqual(classify_line("\n").kind, LineKind.BLANK)
        self.assertEqual(classify_line(">chr1").kind, LineKind.FASTA_HEADER)
        self.assertEqual(classify_line("ACGTNacgtn").kind, LineKind.FASTA_SEQUENCE)

    def test_feature_record(self):
        """Test that a 9 column line is a feature record."""
        line = classify_line("chr1\ttest\tgene\t1\t500\t.\t+\t.\tID=gene1\r\n")
        self.assertEqual(line.kind, LineKind.FEATURE)
        self.assertEqual(len(line.fields), 9)
        self.assertEqual(line.fields[8], "ID=gene1")

    def test_wrong_column_count(self):
        """Test that lines without exactly 9 columns are malformed."""
        self.assertEqual(classify_line("chr1\ttest\tgene\t1\t500").kind, LineKind.MALFORMED)
        self.assertEqual(classify_line("This is not a GFF line").kind, LineKind.MALFORMED)
        too_many = "\t".join(["x"] * 10)
        self.assertEqual(classify_line(too_many).kind, LineKind.MALFORMED)


if __name__ == '__main__':
    unittest.main()
