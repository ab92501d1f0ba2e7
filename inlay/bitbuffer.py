# Licensed under the GPLv3 - see LICENSE.rst
"""Bit-exact accumulator used to pack and unpack fields.

The `~inlay.bitbuffer.BitBuffer` is a 64-bit shift register together with
a count of how many of its bits are valid.  The valid bits are always the
lowest ``bits_avail`` ones; anything above is left-over and never read.

Big-endian fields are added at the bottom, moving earlier content up, and
are taken from the top of the valid region.  Little-endian fields are added
on top of the valid region and are taken from the bottom, after which the
register is shifted down.  Hence, in both cases the first value pushed is
the first one pulled.
"""
from .fieldtype import BIG, LITTLE, MAX_BITS, BitWidthError, raw_bits


__all__ = ['BITS_IN_BUFFER', 'CapacityError', 'MisalignedReadError',
           'BitBuffer']


BITS_IN_BUFFER = MAX_BITS
"""Capacity of the bit buffer."""
_REGISTER_MASK = (1 << BITS_IN_BUFFER) - 1


class CapacityError(OverflowError):
    """Push that would exceed the capacity of the bit buffer."""
    pass


class MisalignedReadError(ValueError):
    """Byte-level access while the buffer holds a partial byte."""
    pass


class BitBuffer:
    """Accumulator for pushing and pulling values of 1 to 64 bits.

    Parameters
    ----------
    bits : int, optional
        Initial content of the register.  Default: 0.
    bits_avail : int, optional
        Number of valid bits in ``bits``.  Default: 0.

    Examples
    --------
    >>> bb = BitBuffer()
    >>> bb.push_value(7, 3)
    >>> bb.push_value(2, 4)
    >>> bb.push_value(1, 1)
    >>> bb
    BitBuffer(bits=0xE5, bits_avail=8)
    >>> list(bb)
    [229]
    """

    def __init__(self, bits=0, bits_avail=0):
        if not 0 <= bits_avail <= BITS_IN_BUFFER:
            raise ValueError("bits_avail should be between 0 and {0}."
                             .format(BITS_IN_BUFFER))
        self.bits = bits & _REGISTER_MASK
        self.bits_avail = bits_avail
        # Byte order in which the current content was pushed.
        self.byte_order = None

    def __repr__(self):
        return "{0}(bits=0x{1:X}, bits_avail={2})".format(
            self.__class__.__name__, self.value, self.bits_avail)

    def __eq__(self, other):
        if not isinstance(other, BitBuffer):
            return NotImplemented
        return (self.bits_avail == other.bits_avail
                and self.value == other.value)

    def mask(self):
        """Mask selecting the valid bits."""
        return (1 << self.bits_avail) - 1

    @property
    def value(self):
        """Valid bits of the register, as an integer."""
        return self.bits & self.mask()

    def is_empty(self):
        return self.bits_avail == 0

    def byte_aligned(self):
        """Whether the buffer holds a non-zero number of whole bytes."""
        return self.bits_avail > 0 and self.bits_avail % 8 == 0

    def reset(self):
        """Discard all content."""
        self.bits = 0
        self.bits_avail = 0
        self.byte_order = None

    def _check_capacity(self, num_bits):
        if num_bits > BITS_IN_BUFFER - self.bits_avail:
            raise CapacityError("cannot push {0} bits into a buffer already "
                                "holding {1} of {2} bits."
                                .format(num_bits, self.bits_avail,
                                        BITS_IN_BUFFER))

    def push_byte_be(self, byte):
        """Append a byte below the current content."""
        self._check_capacity(8)
        self.bits = ((self.bits << 8) | (byte & 0xff)) & _REGISTER_MASK
        self.bits_avail += 8
        self.byte_order = BIG

    def push_byte_le(self, byte):
        """Append a byte above the current content."""
        self._check_capacity(8)
        self.bits = (self.bits & self.mask()) | ((byte & 0xff)
                                                 << self.bits_avail)
        self.bits_avail += 8
        self.byte_order = LITTLE

    def push_byte(self, byte, endianness=BIG):
        if endianness == BIG:
            self.push_byte_be(byte)
        elif endianness == LITTLE:
            self.push_byte_le(byte)
        else:
            raise ValueError("endianness '{0}' not expected."
                             .format(endianness))

    def push_value(self, value, num_bits, endianness=BIG):
        """Insert a value of ``num_bits`` bits.

        Parameters
        ----------
        value : int, float, or numpy scalar
            Value to insert.  Integers are masked to ``num_bits``; floating
            point values are inserted as their IEEE-754 bit pattern.
        num_bits : int
            Width of the value in bits.
        endianness : {'big', 'little'}, optional
            For big-endian, the value becomes the new least significant
            part, with earlier content shifted up; for little-endian it is
            placed above the earlier content.  Default: 'big'.

        Raises
        ------
        CapacityError
            If ``num_bits`` exceeds the space left.  The buffer is not
            changed in that case.
        """
        if num_bits < 1:
            raise BitWidthError("cannot push a value of {0} bits."
                                .format(num_bits))
        self._check_capacity(num_bits)
        bits = raw_bits(value, num_bits, endianness)
        if endianness == BIG:
            self.bits = ((self.bits << num_bits) | bits) & _REGISTER_MASK
        elif endianness == LITTLE:
            self.bits = (self.bits & self.mask()) | (bits << self.bits_avail)
        else:
            raise ValueError("endianness '{0}' not expected."
                             .format(endianness))
        self.bits_avail += num_bits
        self.byte_order = endianness

    def pull_value(self, field_type):
        """Remove the next field from the buffer and return its value.

        Parameters
        ----------
        field_type : `~inlay.fieldtype.FieldType`
            Type of the field, which sets the number of bits, their order,
            and how they are interpreted.

        Returns
        -------
        value : numpy scalar
            Integers use the smallest type holding the field's bit width.

        Raises
        ------
        MisalignedReadError
            If a floating point field is requested while the buffer holds
            a partial byte.
        BitWidthError
            If the buffer holds fewer bits than the field needs.
        """
        num_bits = field_type.num_bits
        if num_bits > BITS_IN_BUFFER:
            raise BitWidthError("{0} bit fields are not supported."
                                .format(num_bits))
        if field_type.is_float and self.bits_avail % 8:
            raise MisalignedReadError(
                "cannot read a {0} while {1} bit(s) of a partial byte "
                "remain.".format(field_type.kind, self.bits_avail % 8))
        if num_bits > self.bits_avail:
            raise BitWidthError("cannot pull {0} bits from a buffer holding "
                             "only {1}.".format(num_bits, self.bits_avail))

        mask = (1 << num_bits) - 1
        if field_type.endianness == BIG:
            self.bits_avail -= num_bits
            # Bits above bits_avail are simply no longer used.
            bits = (self.bits >> self.bits_avail) & mask
        else:
            bits = self.bits & mask
            self.bits >>= num_bits
            self.bits_avail -= num_bits

        return field_type.from_bits(bits)

    def pull_byte(self, endianness=BIG):
        """Remove a whole byte from the buffer.

        Only possible if the buffer is `byte_aligned`.  By default, the byte
        is taken from the top, i.e., as for a big-endian stream; for
        ``endianness='little'``, the byte is taken from the bottom.
        """
        if not self.byte_aligned():
            raise MisalignedReadError("cannot pull a byte from a buffer "
                                      "holding {0} bits."
                                      .format(self.bits_avail))
        self.bits_avail -= 8
        if endianness == LITTLE:
            byte = self.bits & 0xff
            self.bits >>= 8
            return byte

        return (self.bits >> self.bits_avail) & 0xff

    def drain(self, endianness=BIG):
        """Iterate over whole bytes, for as long as the buffer is aligned."""
        while self.byte_aligned():
            yield self.pull_byte(endianness)

    def __iter__(self):
        return self.drain()

    def align(self, endianness=BIG):
        """Drop any bits of a partial byte.

        For big-endian data, the partial byte is at the top of the valid
        region, for little-endian at the bottom.

        Returns
        -------
        nbits : int
            The number of bits dropped.
        """
        extra = self.bits_avail % 8
        if extra and endianness == LITTLE:
            self.bits >>= extra
        self.bits_avail -= extra
        return extra

    def restage(self, endianness):
        """Re-push whole buffered bytes in the given byte order.

        Bytes pushed big-endian sit in the register in the opposite order
        from bytes pushed little-endian.  When a field of the other byte
        order starts on a byte boundary, the staged bytes are drained in
        stream order and pushed again, so the field sees them in its own
        order.  Nothing is done if the buffer is not `byte_aligned`.

        Returns
        -------
        nbytes : int
            The number of bytes re-pushed.
        """
        if (self.byte_order is None or self.byte_order == endianness
                or not self.byte_aligned()):
            return 0

        data = list(self.drain(self.byte_order))
        for byte in data:
            self.push_byte(byte, endianness)
        return len(data)
