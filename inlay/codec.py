# Licensed under the GPLv3 - see LICENSE.rst
"""Reading and writing fields, one template entry at a time.

The functions here bridge a byte stream and a `~inlay.bitbuffer.BitBuffer`.
Bytes are only consumed from the input when the bit buffer does not hold
enough bits for the next field; if it is empty, a whole container is read,
so that subsequent bitfields sharing that container can be pulled without
further reads.  On output, every whole byte is written as soon as the
buffer becomes byte aligned, with any remaining bits staged for the next
field.
"""
import logging

import numpy as np

from .bitbuffer import BITS_IN_BUFFER, CapacityError, MisalignedReadError
from .fieldtype import BIG
from .field import Field


__all__ = ['EndOfStream', 'read_field', 'write_field',
           'read_record', 'write_record', 'align_record', 'pad_record']


log = logging.getLogger(__name__)


class EndOfStream(EOFError):
    """Input ended cleanly, with not a single byte left to read."""
    pass


def _fill(fh, bit_buffer, typ):
    """Ensure the buffer holds enough bits for a field of type ``typ``."""
    if typ.is_float and bit_buffer.bits_avail % 8:
        raise MisalignedReadError(
            "cannot read a {0} while {1} bit(s) of a partial byte remain."
            .format(typ.kind, bit_buffer.bits_avail % 8))

    needed = (typ.num_bits - bit_buffer.bits_avail + 7) // 8
    if bit_buffer.bits_avail + 8 * needed > BITS_IN_BUFFER:
        raise CapacityError("cannot stage a {0} bit field behind {1} "
                            "buffered bits.".format(typ.num_bits,
                                                    bit_buffer.bits_avail))

    count = typ.container_nbytes if bit_buffer.is_empty() else needed
    data = fh.read(count)
    if not data:
        raise EndOfStream("no input left for a {0} field.".format(typ))
    # A short container is fine at the very end, as long as it still holds
    # the field itself.
    if len(data) < needed:
        raise EOFError("needed {0} byte(s) for a {1} field, but only {2} "
                       "remained.".format(needed, typ, len(data)))

    if typ.endianness == BIG:
        push = bit_buffer.push_byte_be
    else:
        push = bit_buffer.push_byte_le
    for byte in data:
        push(byte)


def read_field(fh, bit_buffer, entry, logger=None):
    """Read a single field.

    Parameters
    ----------
    fh : filehandle
        Binary input, supporting ``read(count)``.
    bit_buffer : `~inlay.bitbuffer.BitBuffer`
        Holds bits left over from previous fields; updated in-place.
    entry : `~inlay.field.TemplateEntry`
        Type and description of the field to read.
    logger : `logging.Logger`, optional
        Where to log the fields read.  Default: the module logger.

    Returns
    -------
    field : `~inlay.field.Field`

    Raises
    ------
    EndOfStream
        If more bits were needed, but no input was left at all.
    EOFError
        If the input ended before all bits of the field could be read.
        No bits are taken from the bit buffer in either case.
    """
    bit_buffer.restage(entry.typ.endianness)
    if bit_buffer.bits_avail < entry.typ.num_bits:
        _fill(fh, bit_buffer, entry.typ)

    field = Field(bit_buffer.pull_value(entry.typ), entry.typ,
                  entry.description)
    (logger or log).debug("read %s", field)
    return field


def write_field(fh, bit_buffer, field, logger=None):
    """Write a single field.

    Parameters
    ----------
    fh : filehandle
        Binary output, supporting ``write(data)``.
    bit_buffer : `~inlay.bitbuffer.BitBuffer`
        Holds bits not yet written; updated in-place.
    field : `~inlay.field.Field`
        Field to write.
    logger : `logging.Logger`, optional
        Where to log the fields written.  Default: the module logger.
    """
    typ = field.typ
    value = typ.to_value(field.value)
    if bit_buffer.is_empty() and typ.num_bits == typ.container:
        # Nothing staged and a full container: no need for bit shuffling.
        fh.write(np.array(value, dtype=typ.dtype).tobytes())
    else:
        bit_buffer.push_value(value, typ.num_bits, typ.endianness)
        data = bytes(bit_buffer.drain(typ.endianness))
        if data:
            fh.write(data)

    (logger or log).debug("wrote %s", field)


def read_record(fh, bit_buffer, template, logger=None):
    """Read all fields of a template.

    Returns
    -------
    fields : list of `~inlay.field.Field`

    Raises
    ------
    EndOfStream
        If no byte at all was left for the record, with no more than a
        partial byte (i.e., padding) buffered when it started.
    EOFError
        If the input ended in the middle of the record, including when
        only part of the bytes of its first field remained.
    """
    fields = []
    start = bit_buffer.bits_avail
    for index, entry in enumerate(template):
        try:
            fields.append(read_field(fh, bit_buffer, entry, logger=logger))
        except EOFError as exc:
            used = sum(field.typ.num_bits for field in fields)
            if (isinstance(exc, EndOfStream) and start < 8
                    and used + bit_buffer.bits_avail == start):
                raise EndOfStream('end of input reached.') from exc
            raise EOFError("input ended inside a record, at field {0} ('{1}')."
                           .format(index, entry.description)) from exc

    return fields


def write_record(fh, bit_buffer, fields, logger=None):
    """Write a sequence of fields."""
    for field in fields:
        write_field(fh, bit_buffer, field, logger=logger)


def align_record(bit_buffer, endianness=BIG):
    """Drop the bits of a trailing partial byte, i.e., the record padding.

    Returns
    -------
    nbits : int
        Number of bits dropped.
    """
    return bit_buffer.align(endianness)


def pad_record(fh, bit_buffer, endianness=BIG):
    """Complete a partial byte with zero bits and write all staged bytes.

    Returns
    -------
    nbits : int
        Number of padding bits added.
    """
    padding = -bit_buffer.bits_avail % 8
    if padding:
        bit_buffer.push_value(0, padding, endianness)
    data = bytes(bit_buffer.drain(endianness))
    if data:
        fh.write(data)
    return padding
