# Licensed under the GPLv3 - see LICENSE.rst
"""CSV representations of fields.

Two layouts are supported:

* rows, with header ``type,description,value`` and one line per field.
  This is what ``inlay encode`` reads, so a decoded file can be edited and
  encoded again;
* columns, with the template descriptions as header and one line per
  record, which is convenient for loading into a spreadsheet.
"""
import csv

from .fieldtype import TypeFormatError
from .field import Field


__all__ = ['ROW_HEADER', 'RowError', 'read_rows', 'RowWriter',
           'write_rows', 'ColumnWriter']


ROW_HEADER = ('type', 'description', 'value')


class RowError(ValueError):
    """Error in a row of a CSV file with fields."""

    def __init__(self, msg, line=None):
        if line is not None:
            msg = "error reading record on line {0}: {1}".format(line, msg)
        super().__init__(msg)
        self.line = line


def read_rows(fh):
    """Iterate over the fields in a rows CSV file.

    Parameters
    ----------
    fh : filehandle
        Text filehandle, with header ``type,description,value``.

    Yields
    ------
    field : `~inlay.field.Field`

    Raises
    ------
    RowError
        If the header is wrong or a row cannot be parsed.
    """
    reader = csv.reader(fh)
    try:
        header = next(reader)
    except StopIteration:
        return

    header = tuple(item.strip().lower() for item in header[:3])
    if header != ROW_HEADER:
        raise RowError("expected header 'type,description,value', got '{0}'."
                       .format(','.join(header)), line=1)

    for row in reader:
        if not any(item.strip() for item in row):
            continue
        if len(row) < 3:
            raise RowError("expected 'type,description,value', got '{0}'."
                           .format(','.join(row)), line=reader.line_num)
        try:
            yield Field.fromstrings(row[0], row[1].strip(), row[2])
        except TypeFormatError as exc:
            raise RowError(str(exc), line=reader.line_num) from exc
        except ValueError as exc:
            raise RowError("cannot parse value '{0}' ({1})."
                           .format(row[2], exc), line=reader.line_num) from exc


class RowWriter:
    """Write fields as rows of ``type,description,value``.

    Parameters
    ----------
    fh : filehandle
        Text filehandle.  The header is written on construction.
    """

    def __init__(self, fh):
        self.fh = fh
        self._writer = csv.writer(fh, lineterminator='\n')
        self._writer.writerow(ROW_HEADER)

    def write_field(self, field):
        self._writer.writerow(field.to_record())

    def write_record(self, fields):
        for field in fields:
            self.write_field(field)


def write_rows(fh, fields):
    """Write fields to a rows CSV file, including the header.

    Returns
    -------
    nfield : int
        Number of fields written.
    """
    writer = RowWriter(fh)
    nfield = 0
    for field in fields:
        writer.write_field(field)
        nfield += 1
    return nfield


class ColumnWriter:
    """Write records as lines of values, with descriptions as header.

    Parameters
    ----------
    fh : filehandle
        Text filehandle.  The header is written on construction.
    template : `~inlay.template.Template`
        Used for the header.
    """

    def __init__(self, fh, template):
        self.fh = fh
        self.template = template
        self._writer = csv.writer(fh, lineterminator='\n')
        self._writer.writerow(template.descriptions)

    def write_record(self, fields):
        self._writer.writerow([field.typ.format_value(field.value)
                               for field in fields])
