# Licensed under the GPLv3 - see LICENSE.rst
"""Command line tool for reading and writing simple binary formats.

Usage::

    inlay decode data.bin -t template.csv -o data.csv [-r N] [--columns]
    inlay encode data.csv -o data.bin [-t template.csv]
"""
import io
import csv
import sys
import logging
import argparse

from .template import Template
from .records import read_rows, RowWriter, ColumnWriter
from .base import open as open_fields


__all__ = ['get_parser', 'encode', 'decode', 'main']


log = logging.getLogger(__name__)


def get_parser():
    """Create and configure the CLI argument parser.

    Returns
    -------
    parser : `argparse.ArgumentParser`
    """
    parser = argparse.ArgumentParser(
        prog='inlay',
        description="Quickly read and write simple binary formats, "
        "described by a template of typed (bit)fields.")
    parser.add_argument(
        '-v', '--verbose', action='count', default=0,
        help="Log more; give twice to log every field")
    parser.add_argument(
        '-q', '--quiet', action='store_true',
        help="Only log errors")
    subparsers = parser.add_subparsers(
        title='subcommands', dest='cmd', required=True)

    enc = subparsers.add_parser(
        'encode', help="Encode a CSV file of fields into binary")
    enc.add_argument('in_file', help="CSV file with type,description,value")
    enc.add_argument('-o', '--output', dest='out_file', default='data.bin',
                     help="Binary output file (default: data.bin)")
    enc.add_argument('-t', '--template', dest='template_file',
                     help="Template to group fields into byte-aligned "
                     "records (default: one continuous bit stream)")
    enc.set_defaults(func=_run_encode)

    dec = subparsers.add_parser(
        'decode', help="Decode a binary file into CSV using a template")
    dec.add_argument('in_file', help="Binary input file")
    dec.add_argument('-t', '--template', dest='template_file', required=True,
                     help="CSV file with type,description")
    dec.add_argument('-o', '--output', dest='out_file', default='data.csv',
                     help="CSV output file (default: data.csv)")
    dec.add_argument('-r', '--repeat', dest='repetitions', type=int,
                     default=None,
                     help="Number of records to decode (default: all)")
    dec.add_argument('-c', '--columns', action='store_true',
                     help="Write one line per record instead of one per "
                     "field")
    dec.add_argument('-s', '--stream', action='store_true',
                     help="Do not align records to byte boundaries")
    dec.set_defaults(func=_run_decode)

    return parser


def _group(fields, size):
    record = []
    for field in fields:
        record.append(field)
        if len(record) == size:
            yield record
            record = []
    if record:
        raise ValueError("last record has only {0} of {1} fields."
                         .format(len(record), size))


def encode(in_file, out_file, template_file=None):
    """Encode a rows CSV file into a binary file.

    Parameters
    ----------
    in_file : str
        CSV file with header ``type,description,value``.
    out_file : str
        Binary file to write.
    template_file : str, optional
        If given, fields are grouped into records of the template, which
        are checked against it and padded to whole bytes.  Otherwise, all
        fields form a single bit stream.

    Returns
    -------
    nfield : int
        Number of fields written.
    """
    template = None if template_file is None else Template.read(template_file)
    nfield = 0
    with io.open(in_file, 'r', newline='') as fi:
        log.info("opened %s", in_file)
        with open_fields(out_file, 'wb', template=template,
                         aligned=template is not None) as fw:
            if template is None:
                for field in read_rows(fi):
                    fw.write_field(field)
                    nfield += 1
            else:
                for record in _group(read_rows(fi), len(template)):
                    fw.write_record(record)
                    nfield += len(record)

    log.info("finished writing %d field(s) to %s", nfield, out_file)
    return nfield


def decode(in_file, out_file, template_file, repetitions=None,
           columns=False, aligned=True):
    """Decode a binary file into CSV.

    Parameters
    ----------
    in_file : str
        Binary input file.
    out_file : str
        CSV file to write.
    template_file : str
        CSV file with header ``type,description``.
    repetitions : int, optional
        Maximum number of records to decode.  Default: until end of input.
    columns : bool, optional
        Write one line per record instead of one per field.
    aligned : bool, optional
        Whether records start at byte boundaries.  Default: `True`.

    Returns
    -------
    nrecord : int
        Number of records decoded.
    """
    template = Template.read(template_file)
    log.info("opened template %s (%d fields, %d bits per record)",
             template_file, len(template), template.num_bits)
    nrecord = 0
    with open_fields(in_file, 'rb', template=template,
                     aligned=aligned) as fr:
        with io.open(out_file, 'w', newline='') as fo:
            writer = (ColumnWriter(fo, template) if columns
                      else RowWriter(fo))
            for record in fr.iter_records(repetitions):
                writer.write_record(record)
                nrecord += 1

    log.info("finished writing %d record(s) to %s", nrecord, out_file)
    return nrecord


def _run_encode(args):
    encode(args.in_file, args.out_file, args.template_file)


def _run_decode(args):
    decode(args.in_file, args.out_file, args.template_file,
           repetitions=args.repetitions, columns=args.columns,
           aligned=not args.stream)


def main(argv=None):
    """Entry point for the command line tool.

    Returns
    -------
    status : int
        0 on success, 1 if the conversion failed.
    """
    parser = get_parser()
    args = parser.parse_args(argv)

    if args.quiet:
        level = logging.ERROR
    else:
        level = (logging.WARNING, logging.INFO,
                 logging.DEBUG)[min(args.verbose, 2)]
    logging.basicConfig(level=level, format='%(levelname)s: %(message)s')

    try:
        args.func(args)
    except (OSError, ValueError, EOFError, OverflowError, csv.Error) as exc:
        log.debug("conversion failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
