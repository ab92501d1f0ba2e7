# Licensed under the GPLv3 - see LICENSE.rst
"""Record layouts, defined as an ordered sequence of template entries.

Templates are normally read from a two-column CSV file, with header
``type,description``, e.g.::

    type,description
    uint4_be:16,version
    uint8_be:16,length
    uint2_be:16,flags
    uint2_be:16,spare
    float_le,temperature
"""
import io
import csv

from astropy.utils import lazyproperty

from .fieldtype import TypeFormatError
from .field import TemplateEntry


__all__ = ['TEMPLATE_HEADER', 'TemplateError', 'Template']


TEMPLATE_HEADER = ('type', 'description')


class TemplateError(ValueError):
    """Error in a template definition.

    Parameters
    ----------
    msg : str
        Description of the problem.
    line : int, optional
        Line number in the template file (the header is line 1).
    """

    def __init__(self, msg, line=None):
        if line is not None:
            msg = "error parsing template line {0}: {1}".format(line, msg)
        super().__init__(msg)
        self.line = line


class Template(tuple):
    """Ordered, immutable sequence of template entries.

    Parameters
    ----------
    entries : iterable
        Items should be `~inlay.field.TemplateEntry` or tuples that can be
        used to construct one, i.e., ``(type, description)``, where the type
        can be a descriptor string.

    Examples
    --------
    >>> template = Template([('uint3_be', 'a'), ('uint5_be', 'b')])
    >>> template.num_bits, template.nbytes
    (8, 1)
    """

    def __new__(cls, entries=()):
        return super().__new__(cls, (
            entry if isinstance(entry, TemplateEntry)
            else TemplateEntry(*entry) for entry in entries))

    def __repr__(self):
        return '{0}([{1}])'.format(
            self.__class__.__name__,
            ', '.join("('{0}', {1!r})".format(entry.typ, entry.description)
                      for entry in self))

    @lazyproperty
    def num_bits(self):
        """Total number of bits in a record."""
        return sum(entry.num_bits for entry in self)

    @lazyproperty
    def nbytes(self):
        """Number of bytes in a record, including any padding."""
        return (self.num_bits + 7) // 8

    @lazyproperty
    def descriptions(self):
        return tuple(entry.description for entry in self)

    def fields(self, values):
        """Combine the entries with values to create a list of fields."""
        values = list(values)
        if len(values) != len(self):
            raise ValueError("template has {0} entries, but {1} values were "
                             "given.".format(len(self), len(values)))
        return [entry.field(value) for entry, value in zip(self, values)]

    @classmethod
    def read(cls, name):
        """Read a template from a CSV file.

        Parameters
        ----------
        name : str or filehandle
            Name of the file, or a text filehandle.

        Raises
        ------
        TemplateError
            If the file is empty, has an unexpected header, or a line
            cannot be parsed.  The offending line is included in the error.
        """
        if hasattr(name, 'read'):
            return cls._read(name)

        with io.open(name, 'r', newline='') as fh:
            return cls._read(fh)

    fromfile = read

    @classmethod
    def _read(cls, fh):
        reader = csv.reader(fh)
        try:
            header = next(reader)
        except StopIteration:
            raise TemplateError('template file is empty.') from None

        header = tuple(item.strip().lower() for item in header[:2])
        if header != TEMPLATE_HEADER:
            raise TemplateError("expected header 'type,description', got "
                                "'{0}'.".format(','.join(header)), line=1)

        entries = []
        for row in reader:
            if not any(item.strip() for item in row):
                continue
            if len(row) < 2:
                raise TemplateError("expected 'type,description', got '{0}'."
                                    .format(','.join(row)),
                                    line=reader.line_num)
            try:
                entries.append(TemplateEntry(row[0], row[1].strip()))
            except TypeFormatError as exc:
                raise TemplateError(str(exc), line=reader.line_num) from exc

        if not entries:
            raise TemplateError('template defines no fields.')

        return cls(entries)

    def write(self, name):
        """Write the template to a CSV file (name or text filehandle)."""
        if not hasattr(name, 'write'):
            with io.open(name, 'w', newline='') as fh:
                return self.write(fh)

        writer = csv.writer(name, lineterminator='\n')
        writer.writerow(TEMPLATE_HEADER)
        for entry in self:
            writer.writerow((str(entry.typ), entry.description))
