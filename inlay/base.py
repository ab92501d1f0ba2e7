# Licensed under the GPLv3 - see LICENSE.rst
"""Wrappers that add field and record methods to binary files.

The `~inlay.base.FileBase` class stores the underlying file in ``fh_raw``
and passes on any attribute it does not itself define.  The reader and
writer subclasses each own a `~inlay.bitbuffer.BitBuffer`, which keeps
track of bits shared between consecutive fields.

By default, records are byte aligned: any bits left in a partial byte at
the end of a record are treated as padding, i.e., dropped when reading and
zero-filled when writing, so that each record takes up exactly
``template.nbytes`` bytes.  With ``aligned=False``, the bit buffer instead
carries on across records, as for a continuous bit stream.

The `~inlay.base.FileOpener` class helps create the ``open`` function.
"""
import io
import functools
import logging
import warnings

from .bitbuffer import BitBuffer
from .field import Field
from .template import Template
from .codec import (EndOfStream, read_field, write_field,
                    read_record, write_record, align_record, pad_record)


__all__ = ['FileBase', 'FieldFileReader', 'FieldFileWriter',
           'FileOpener', 'open']


log = logging.getLogger(__name__)


class FileBase:
    """File wrapper, used to add field methods to a binary data file.

    The underlying file is stored in ``fh_raw`` and all attributes that do not
    exist on the class itself are looked up on it.

    Parameters
    ----------
    fh_raw : filehandle
        Filehandle of the raw binary data file.
    template : `~inlay.template.Template` or iterable, optional
        Layout of the records in the file.
    aligned : bool, optional
        Whether records start at byte boundaries.  Default: `True`.
    logger : `logging.Logger`, optional
        Where to log progress.  Default: the module logger.
    """
    fh_raw = None

    def __init__(self, fh_raw, template=None, *, aligned=True, logger=None):
        self.fh_raw = fh_raw
        if template is not None and not isinstance(template, Template):
            template = Template(template)
        self.template = template
        self.aligned = aligned
        self.logger = logger or log
        self.bit_buffer = BitBuffer()

    def __getattr__(self, attr):
        """Try to get things on the current open file if it is not on self."""
        if not attr.startswith('_'):
            try:
                return getattr(self.fh_raw, attr)
            except AttributeError:
                pass
        #  __getattribute__ to raise appropriate error.
        return self.__getattribute__(attr)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.fh_raw.close()

    def __repr__(self):
        return "{0}(fh_raw={1}, template={2})".format(
            self.__class__.__name__, self.fh_raw, self.template)


class FieldFileReader(FileBase):
    """Wrapped binary file reader, adding methods to read fields and records.

    Parameters are as for `~inlay.base.FileBase`; a template is required
    to read records.
    """

    def read_field(self, entry):
        """Read a single field, described by a template entry."""
        return read_field(self.fh_raw, self.bit_buffer, entry,
                          logger=self.logger)

    def read_record(self):
        """Read the fields of one record.

        Returns
        -------
        fields : list of `~inlay.field.Field`

        Raises
        ------
        EndOfStream
            If the file ended at a record boundary.
        EOFError
            If the file ended inside a record.
        TypeError
            If the reader has no template, or one without entries.
        """
        if not self.template:
            raise TypeError("reading records requires a template with "
                            "fields.")

        fields = read_record(self.fh_raw, self.bit_buffer, self.template,
                             logger=self.logger)
        if self.aligned:
            align_record(self.bit_buffer, fields[-1].typ.endianness)
        return fields

    def iter_records(self, count=None):
        """Iterate over records, until the end of the file or ``count``."""
        nrecord = 0
        while count is None or nrecord < count:
            try:
                record = self.read_record()
            except EndOfStream:
                break

            nrecord += 1
            yield record

        self.logger.info("read %d record(s)", nrecord)

    __iter__ = iter_records

    def read_records(self, count=None):
        """Read records, until the end of the file or ``count``.

        Returns
        -------
        records : list of list of `~inlay.field.Field`
        """
        return list(self.iter_records(count))


class FieldFileWriter(FileBase):
    """Wrapped binary file writer, adding methods to write fields and records.

    Parameters are as for `~inlay.base.FileBase`.  If a template is given,
    records are checked against it, and can also be given as plain values.
    """
    _endianness = None

    def write_field(self, field):
        """Write a single field."""
        write_field(self.fh_raw, self.bit_buffer, field, logger=self.logger)
        self._endianness = field.typ.endianness

    def write_record(self, fields):
        """Write the fields of one record.

        Parameters
        ----------
        fields : iterable
            Items should be `~inlay.field.Field` instances, or, if the writer
            has a template, can be numbers to combine with the template.
        """
        fields = list(fields)
        if self.template is not None:
            if len(fields) != len(self.template):
                raise ValueError("template has {0} entries, but the record "
                                 "has {1} fields.".format(len(self.template),
                                                          len(fields)))
            fields = [self._check(entry, field)
                      for entry, field in zip(self.template, fields)]

        write_record(self.fh_raw, self.bit_buffer, fields, logger=self.logger)
        if fields:
            self._endianness = fields[-1].typ.endianness
        if self.aligned:
            self.pad()

    @staticmethod
    def _check(entry, field):
        if not isinstance(field, Field):
            return entry.field(field)
        if field.typ != entry.typ:
            raise ValueError("field '{0}' has type {1}, while template "
                             "expects {2}.".format(field.description,
                                                   field.typ, entry.typ))
        return field

    def pad(self):
        """Zero-fill any partial byte and write it out.

        Returns
        -------
        nbits : int
            Number of padding bits added.
        """
        return pad_record(self.fh_raw, self.bit_buffer,
                          self._endianness or 'big')

    def close(self):
        if not self.bit_buffer.is_empty():
            warnings.warn("closing with partial byte remaining.  "
                          "Writing it padded with zeros.")
            self.pad()
        return super().close()


class FileOpener:
    """File opener for field files.

    The instance can be used as a function to open a file for reading or
    writing, wrapping it in a reader or writer class.

    Parameters
    ----------
    classes : dict
        With the reader and writer classes, keyed by mode ('rb' and 'wb').
    """

    def __init__(self, classes):
        self.classes = classes

    def normalize_mode(self, mode):
        if mode in self.classes:
            return mode
        if mode[::-1] in self.classes:
            return mode[::-1]
        if mode in {'r', 'w'}:
            return mode + 'b'

        raise ValueError(f'invalid mode: {mode} '
                         f'(supported are {set(self.classes)}).')

    def is_fh(self, name):
        """Whether name is a filehandle."""
        return hasattr(name, 'read') or hasattr(name, 'write')

    def get_fh(self, name, mode):
        """Ensure name is a filehandle, opening it if necessary."""
        if self.is_fh(name):
            return name

        return io.open(name, mode)

    def __call__(self, name, mode='rb', template=None, **kwargs):
        """
        Open a binary file for reading or writing fields and records.

        Parameters
        ----------
        name : str or filehandle
            File name or binary filehandle.
        mode : {'rb', 'wb'}, optional
            Whether to open for reading or writing.  Default: 'rb'.
        template : `~inlay.template.Template`, iterable, or str, optional
            Layout of the records.  Required for reading records.  If a
            string, the template is read from the file with that name.
        **kwargs
            Further arguments for the reader or writer, such as ``aligned``
            and ``logger``.
        """
        mode = self.normalize_mode(mode)
        if isinstance(template, str):
            template = Template.read(template)

        fh = self.get_fh(name, mode)
        try:
            return self.classes[mode](fh, template, **kwargs)
        except Exception:
            if fh is not name:
                fh.close()
            raise

    def wrapped(self, module=None, doc=None):
        """Wrap as a function named open, replacing docstring and module."""

        @functools.wraps(self.__call__)
        def open(*args, **kwargs):
            return self(*args, **kwargs)

        if doc:
            open.__doc__ = doc

        if module:
            open.__module__ = module

        return open


open = FileOpener({'rb': FieldFileReader,
                   'wb': FieldFileWriter}).wrapped(module=__name__)
