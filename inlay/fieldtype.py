# Licensed under the GPLv3 - see LICENSE.rst
"""Field types describing how a value is laid out in a binary record.

A `~inlay.fieldtype.FieldType` is a closed union over four kinds:

  ========= ============= ==========================================
  kind      bits          notes
  ========= ============= ==========================================
  'int'     1 to 64       signed, two's complement
  'uint'    1 to 64       unsigned
  'float'   32            IEEE-754 single precision
  'double'  64            IEEE-754 double precision
  ========= ============= ==========================================

Each carries an endianness (``'big'`` or ``'little'``) and a container
size, which is the number of bits loaded from the input when a field is
read with an empty bit buffer.  Values are represented by numpy scalars,
using the smallest type that can hold the declared bit width.

Field types are usually given as descriptor strings, with grammar
``(int|uint|float|double)<bits>?_(be|le)(:<container>)?``, e.g.,
``uint3_be``, ``int12_le:32`` or ``double_be``.
"""
import re
from collections import namedtuple

import numpy as np


__all__ = ['BIG', 'LITTLE', 'MAX_BITS', 'CONTAINER_SIZES',
           'TypeFormatError', 'BitWidthError',
           'default_container', 'raw_bits', 'FieldType']


BIG = 'big'
"""Big-endian: first bits in the stream are the most significant."""
LITTLE = 'little'
"""Little-endian: first bits in the stream are the least significant."""

MAX_BITS = 64
"""Largest supported field width."""
CONTAINER_SIZES = (8, 16, 32, 64)
"""Allowed container sizes, in bits."""

_ENDIANNESS = {'be': BIG, 'le': LITTLE}
_TOKENS = {BIG: 'be', LITTLE: 'le'}
# numpy byte order characters.
_BYTE_ORDER = {BIG: '>', LITTLE: '<'}
_FLOAT_BITS = {'float': 32, 'double': 64}
_FLOAT_DTYPES = {32: 'f4', 64: 'f8'}

_TYPE_REGEX = re.compile(
    r'(int|uint|float|double)(\d*)_([a-z0-9]+)(?::(\d+))?$')

_VALUE_TYPES = {
    ('uint', 8): np.uint8,
    ('uint', 16): np.uint16,
    ('uint', 32): np.uint32,
    ('uint', 64): np.uint64,
    ('int', 8): np.int8,
    ('int', 16): np.int16,
    ('int', 32): np.int32,
    ('int', 64): np.int64,
    ('float', 32): np.float32,
    ('double', 64): np.float64}


class TypeFormatError(ValueError):
    """Field type descriptor or definition that cannot be understood."""
    pass


class BitWidthError(TypeFormatError):
    """Bit width outside of the supported range of 1 to 64 bits."""
    pass


def default_container(bits):
    """Smallest container size that can hold ``bits`` bits.

    Parameters
    ----------
    bits : int
        Width of a field in bits.

    Returns
    -------
    container : int
        One of 8, 16, 32 or 64.

    Raises
    ------
    BitWidthError
        If ``bits`` is not between 1 and 64.
    """
    if not 1 <= bits <= MAX_BITS:
        raise BitWidthError("{0} bit fields are not supported; widths "
                            "must be between 1 and {1}."
                            .format(bits, MAX_BITS))
    for container in CONTAINER_SIZES:
        if bits <= container:
            return container


def raw_bits(value, num_bits, endianness=BIG):
    """Get the bit pattern of a value as an unsigned integer.

    Integers are masked to the lowest ``num_bits`` bits.  Floating point
    values are not converted numerically; instead, their IEEE-754 bit
    pattern (in the given byte order) is returned as a plain integer.

    Parameters
    ----------
    value : int, float, or numpy scalar
        Value to convert.
    num_bits : int
        Number of bits.  For floating point values, must be 32 or 64.
    endianness : {'big', 'little'}, optional
        Byte order used to encode floating point values.

    Returns
    -------
    bits : int
        In the range ``0 <= bits < 2**num_bits``.
    """
    if isinstance(value, (float, np.floating)):
        try:
            dtype = _BYTE_ORDER[endianness] + _FLOAT_DTYPES[num_bits]
        except KeyError:
            raise BitWidthError("floating point values need 32 or 64 bits, "
                                "not {0}.".format(num_bits)) from None
        return int.from_bytes(np.array(value, dtype=dtype).tobytes(),
                              endianness)

    return int(value) & ((1 << num_bits) - 1)


class FieldType(namedtuple('FieldType',
                           ['kind', 'bits', 'endianness', 'container'])):
    """Description of how a single field is encoded.

    Parameters
    ----------
    kind : {'int', 'uint', 'float', 'double'}
        Numerical kind.
    bits : int or None
        Bit width.  Required for 'int' and 'uint'; for 'float' and 'double'
        can be `None` or the fixed width of 32 and 64, respectively.
    endianness : {'big', 'little'}, optional
        Order of bits and bytes in the stream.  Default: 'big'.
    container : int, optional
        Number of bits read when the field starts with an empty buffer.
        Default: the smallest of 8, 16, 32, 64 that holds ``bits``.

    Examples
    --------
    >>> FieldType('uint', 3)
    FieldType(kind='uint', bits=3, endianness='big', container=8)
    >>> print(FieldType.fromstring('INT12_LE:32'))
    int12_le:32
    """
    __slots__ = ()

    def __new__(cls, kind, bits=None, endianness=BIG, container=None):
        if endianness not in _TOKENS:
            raise TypeFormatError("endianness '{0}' not expected; should be "
                                  "'{1}' or '{2}'.".format(endianness,
                                                           BIG, LITTLE))
        if kind in _FLOAT_BITS:
            fixed = _FLOAT_BITS[kind]
            if bits not in (None, fixed):
                raise BitWidthError("{0} fields always have {1} bits."
                                    .format(kind, fixed))
            if container not in (None, fixed):
                raise TypeFormatError("{0} fields cannot have a container "
                                      "other than {1} bits."
                                      .format(kind, fixed))
            bits = container = fixed

        elif kind in ('int', 'uint'):
            if bits is None:
                raise TypeFormatError("{0} fields need a bit width."
                                      .format(kind))
            bits = int(bits)
            if container is None:
                container = default_container(bits)
            else:
                default_container(bits)
                container = int(container)
                if container not in CONTAINER_SIZES:
                    raise TypeFormatError(
                        "container of {0} bits not supported; should be one "
                        "of {1}.".format(container, CONTAINER_SIZES))
                if container < bits:
                    raise TypeFormatError(
                        "{0} bit field does not fit in a {1} bit container."
                        .format(bits, container))
        else:
            raise TypeFormatError("field kind '{0}' not expected."
                                  .format(kind))

        return super().__new__(cls, kind, bits, endianness, container)

    @classmethod
    def fromstring(cls, text):
        """Parse a field type descriptor such as ``uint3_be`` or ``int12_le:32``.

        Parsing is case-insensitive and ignores surrounding whitespace.

        Raises
        ------
        TypeFormatError
            If the descriptor does not match the grammar, has an unknown
            endianness, or a bit width where none is allowed (or vice versa).
        BitWidthError
            If the bit width is not between 1 and 64.
        """
        match = _TYPE_REGEX.match(text.strip().lower())
        if match is None:
            raise TypeFormatError(
                "field type '{0}' not understood; expected something like "
                "'uint8_be', 'int3_le:16' or 'float_be'.".format(text))

        kind, bits, token, container = match.groups()
        try:
            endianness = _ENDIANNESS[token]
        except KeyError:
            raise TypeFormatError("endianness '{0}' not expected in field "
                                  "type '{1}'.".format(token, text)) from None

        if kind in _FLOAT_BITS:
            if bits or container:
                raise TypeFormatError("{0} field type '{1}' cannot have a "
                                      "bit width.".format(kind, text))
            return cls(kind, None, endianness)

        if not bits:
            raise TypeFormatError("{0} field type '{1}' needs a bit width."
                                  .format(kind, text))

        return cls(kind, int(bits), endianness,
                   None if container is None else int(container))

    parse = fromstring

    def __str__(self):
        token = _TOKENS[self.endianness]
        if self.kind in _FLOAT_BITS:
            return '{0}_{1}'.format(self.kind, token)

        descriptor = '{0}{1}_{2}'.format(self.kind, self.bits, token)
        if self.container != default_container(self.bits):
            descriptor += ':{0}'.format(self.container)
        return descriptor

    @property
    def num_bits(self):
        """Number of bits taken up by the field."""
        return self.bits

    @property
    def container_nbytes(self):
        """Number of bytes in the container."""
        return self.container // 8

    @property
    def signed(self):
        return self.kind != 'uint'

    @property
    def is_float(self):
        """Whether the field holds a floating point number."""
        return self.kind in _FLOAT_BITS

    @property
    def value_type(self):
        """Numpy scalar type used for values of this field.

        For integers, this is the smallest type that can hold ``bits``.
        """
        if self.is_float:
            return _VALUE_TYPES[self.kind, self.bits]
        return _VALUE_TYPES[self.kind, default_container(self.bits)]

    @property
    def dtype(self):
        """Numpy dtype, with byte order, for fields filling their container."""
        return np.dtype(self.value_type).newbyteorder(
            _BYTE_ORDER[self.endianness])

    def to_value(self, number):
        """Convert a number to a value of this field type.

        Integers are masked to the field's bit width, and for signed fields
        then sign-extended, i.e., no range checking is done beyond what
        fits in the given number of bits.
        """
        if self.is_float:
            return self.value_type(number)

        number = int(number) & ((1 << self.bits) - 1)
        if self.signed and number >> (self.bits - 1):
            number -= 1 << self.bits
        return self.value_type(number)

    def from_bits(self, bits):
        """Interpret a raw bit pattern as a value of this field type.

        For floating point fields, the pattern is converted to bytes in
        the field's byte order, and then read as an IEEE-754 number using
        that same byte order.
        """
        if not self.is_float:
            return self.to_value(bits)

        order = _BYTE_ORDER[self.endianness]
        data = bits.to_bytes(self.bits // 8, self.endianness)
        return np.frombuffer(data, dtype=order + _FLOAT_DTYPES[self.bits])[0]

    def to_bits(self, value):
        """Raw bit pattern of a value of this field type."""
        return raw_bits(self.to_value(value), self.bits, self.endianness)

    def parse_value(self, text):
        """Parse a textual value (as found in a CSV file).

        Integers are decimal, but can also be given with a ``0x``, ``0o``
        or ``0b`` prefix.  Floating point values can be anything `float`
        understands, including ``nan`` and ``inf``.
        """
        text = text.strip()
        if self.is_float:
            return self.to_value(float(text))

        try:
            number = int(text)
        except ValueError:
            number = int(text, 0)
        return self.to_value(number)

    def format_value(self, value):
        """Textual form of a value, which `parse_value` reads back exactly.

        Integers are written in decimal, floating point numbers using the
        shortest representation that round-trips at the field's precision.
        """
        return str(self.to_value(value))
