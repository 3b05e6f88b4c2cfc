"""
Readers for GFF3, GTF, and generic GFF annotation files.
"""
