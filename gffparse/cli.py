#!/usr/bin/env python3
"""
gffparse - summarize and query GFF3, GTF, and GFF annotation files.

Main command-line interface for the gffparse tool.
"""

import argparse
import logging
import sys
from collections import Counter

from gffparse import __version__
from gffparse.core.utils import setup_logging
from gffparse.io.gff_parser import GFFParser


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description='Parse GFF3, GTF, and GFF files into nested gene models.')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # Options shared by all commands
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('gff_file', help='Input GFF, GTF, or GFF3 file, optionally gzipped')

    parsing_group = common.add_argument_group('Parsing Options')
    parsing_group.add_argument('--gff-version', choices=['1', '2', '2.5', '3'],
                               help='GFF version, normally taken from the extension or ##gff-version pragma')
    parsing_group.add_argument('--skip', action='append', default=[], metavar='TYPE',
                               help='Feature type to skip, may be repeated or comma-separated (e.g. CDS)')
    parsing_group.add_argument('--simplify', action='store_true',
                               help='Keep only name, ID, and parentage attributes')
    parsing_group.add_argument('--feature-class',
                               help='Import path of an alternative feature class (package.module.Class)')

    debug_group = common.add_argument_group('Debug Options')
    debug_group.add_argument('--debug', action='store_true', help='Enable debug output')
    debug_group.add_argument('--verbose', action='store_true', help='Enable verbose output without full debug')
    debug_group.add_argument('--log-file', help='Write log to this file')

    subparsers.add_parser('summary', parents=[common],
                          help='Summarize the features, orphans, and sequences in a file')

    find_parser = subparsers.add_parser('find', parents=[common], help='Find a gene by name and print its model')
    find_parser.add_argument('name', help='Gene name, case-insensitive')
    find_group = find_parser.add_argument_group('Disambiguation Options')
    find_group.add_argument('--id', help='Required gene ID')
    find_group.add_argument('--seq-id', help='Chromosome the gene must be on')
    find_group.add_argument('--start', type=int, help='Start of a region the gene must overlap')
    find_group.add_argument('--end', type=int, help='End of a region the gene must overlap')
    find_group.add_argument('--strand', choices=['+', '-', '.'], default='.', help='Strand of the gene')

    return parser.parse_args(argv)


def skip_types(values):
    """Flatten repeated and comma-separated --skip values."""
    types = []
    for value in values:
        types.extend(t.strip() for t in value.split(',') if t.strip())
    return types


def format_feature(feature, depth=0):
    """Format one feature as an indented, tab-delimited line."""
    location = f"{feature.seq_id}:{feature.start}-{feature.end}({feature.strand.symbol})"
    return '\t'.join([
        '  ' * depth + (feature.primary_tag or '.'),
        feature.primary_id or '.',
        feature.display_name or '.',
        location,
    ])


def format_tree(feature, depth=0):
    """Format a feature and all of its children, depth-first."""
    lines = [format_feature(feature, depth)]
    for child in feature.get_children():
        lines.extend(format_tree(child, depth + 1))
    return lines


def summarize(parser):
    """Build the summary report lines for a parsed file."""
    top_features = parser.top_features()
    type_counts = Counter()
    for feature in top_features:
        type_counts[feature.primary_tag or '.'] += 1
        for child in feature.iter_descendants():
            type_counts[child.primary_tag or '.'] += 1

    version = parser.version
    lines = [
        f"File: {parser.filename}",
        f"Format: {version.label + ' (version ' + version.value + ')' if version else 'GFF (version unknown)'}",
        f"Top-level features: {len(top_features)}",
        f"Orphans: {len(parser.orphans())}",
        f"Unparented genes: {len(parser.unparented())}",
        f"Duplicate IDs: {', '.join(parser.duplicate_ids()) or 'none'}",
        "Feature types:",
    ]
    for primary_tag, count in sorted(type_counts.items()):
        lines.append(f"  {primary_tag}\t{count}")
    lines.append("Sequences:")
    for seq_id, length in sorted(parser.seq_id_lengths().items()):
        lines.append(f"  {seq_id}\t{length}")
    return lines


def main(argv=None):
    """Main function to run the gffparse command-line tool."""
    args = parse_args(argv)

    # Setup logging
    setup_logging(debug=args.debug, log_file=args.log_file, verbose=args.verbose)

    try:
        parser = GFFParser(
            file=args.gff_file,
            version=args.gff_version,
            skip=skip_types(args.skip),
            simplify=args.simplify,
            feature_class=args.feature_class,
        )

        if args.command == 'summary':
            print('\n'.join(summarize(parser)))
            return 0

        gene = parser.find_gene(
            args.name,
            id=args.id,
            seq_id=args.seq_id,
            start=args.start,
            end=args.end,
            strand=args.strand,
        )
        if gene is None:
            logging.error(f"No gene named {args.name} found")
            return 1
        print('\n'.join(format_tree(gene)))
        return 0

    except Exception as e:
        logging.error(f"Error while parsing {args.gff_file}: {e}")
        if args.debug:
            import traceback
            logging.error(traceback.format_exc())
        return 1


if __name__ == "__main__":
    sys.exit(main())
