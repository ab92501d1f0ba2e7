# Licensed under the GPLv3 - see LICENSE.rst
import io

import pytest
import numpy as np

from ..fieldtype import BIG, LITTLE, FieldType
from ..bitbuffer import BitBuffer, CapacityError, MisalignedReadError
from ..field import TemplateEntry, Field
from ..template import Template
from ..codec import (EndOfStream, read_field, write_field,
                     read_record, write_record, align_record, pad_record)


def read_all(data, types):
    fh = io.BytesIO(bytes(data))
    bb = BitBuffer()
    values = [read_field(fh, bb, TemplateEntry(typ)).value for typ in types]
    return values, fh, bb


def write_all(fields):
    fh = io.BytesIO()
    bb = BitBuffer()
    write_record(fh, bb, fields)
    return fh, bb


class TestReadField:
    def test_widths_be(self):
        data = [1, 0, 2, 0, 0, 0, 3, 0, 0, 0, 0, 0, 0, 0, 4]
        values, fh, bb = read_all(data, ('uint8_be', 'uint16_be',
                                         'uint32_be', 'uint64_be'))
        assert values == [1, 2, 3, 4]
        assert [type(v) for v in values] == [np.uint8, np.uint16,
                                             np.uint32, np.uint64]
        assert fh.read() == b''
        assert bb.is_empty()

    def test_widths_le(self):
        data = [1, 2, 0, 3, 0, 0, 0, 4, 0, 0, 0, 0, 0, 0, 0]
        values, fh, bb = read_all(data, ('uint8_le', 'uint16_le',
                                         'uint32_le', 'uint64_le'))
        assert values == [1, 2, 3, 4]

    def test_signed(self):
        values, _, _ = read_all([0xff, 0xfe, 0xff, 0, 0, 0, 0x80],
                                ('int8_be', 'int16_le', 'int32_le'))
        assert values == [-1, -2, -2**31]

    def test_float_be(self):
        values, _, _ = read_all([0x40, 0x49, 0x0f, 0xdb], ('float_be',))
        assert values[0] == pytest.approx(3.1415927)
        assert type(values[0]) is np.float32

    def test_float_le(self):
        values, _, _ = read_all([0xdb, 0x0f, 0x49, 0x40], ('float_le',))
        assert values[0] == pytest.approx(3.1415927)

    def test_double_be(self):
        values, _, _ = read_all([0x40, 0x09, 0x21, 0xfb,
                                 0x54, 0x44, 0x2e, 0xea], ('double_be',))
        assert values[0] == pytest.approx(3.14159265359, abs=1e-11)
        assert type(values[0]) is np.float64

    def test_double_le(self):
        values, _, _ = read_all([0xea, 0x2e, 0x44, 0x54,
                                 0xfb, 0x21, 0x09, 0x40], ('double_le',))
        assert values[0] == pytest.approx(3.14159265359, abs=1e-11)

    def test_bitfields_le(self):
        values, fh, bb = read_all([0xa5], ['uint1_le'] * 8)
        assert values == [1, 0, 1, 0, 0, 1, 0, 1]
        assert bb.is_empty()

    def test_bitfields_be(self):
        values, _, _ = read_all([0xc1], ['uint1_be'] * 8)
        assert values == [1, 1, 0, 0, 0, 0, 0, 1]
        values, _, _ = read_all([0xc1], ['uint1_le'] * 8)
        assert values == [1, 0, 0, 0, 0, 0, 1, 1]

    def test_word_be(self):
        values, fh, bb = read_all(
            [0x12, 0x34, 0x56, 0x78],
            ('uint4_be:16', 'uint8_be:16', 'uint2_be:16', 'uint2_be:16'))
        assert values == [1, 0x23, 1, 0]
        # Only the first container was needed.
        assert fh.tell() == 2
        assert bb.is_empty()

    def test_word_le(self):
        values, fh, bb = read_all(
            [0x35, 0x12, 0x56, 0x78],
            ('uint4_le:16', 'uint8_le:16', 'uint2_le:16', 'uint2_le:16'))
        assert values == [5, 0x23, 1, 0]
        assert fh.tell() == 2

    def test_top_up(self):
        values, fh, bb = read_all([0xab, 0xcd, 0xef],
                                  ('uint4_be', 'uint8_be'))
        assert values == [0xa, 0xbc]
        assert fh.tell() == 2
        assert bb == BitBuffer(0xd, 4)

    def test_short_container_at_end(self):
        values, fh, bb = read_all([0x07], ('uint8_be:32',))
        assert values == [7]
        assert bb.is_empty()

    def test_eof(self):
        fh = io.BytesIO(b'\x01')
        bb = BitBuffer()
        with pytest.raises(EOFError):
            read_field(fh, bb, TemplateEntry('uint16_be'))
        assert bb.is_empty()

    def test_end_of_stream(self):
        bb = BitBuffer(0x5, 3)
        with pytest.raises(EndOfStream):
            read_field(io.BytesIO(b''), bb, TemplateEntry('uint8_be'))
        assert bb == BitBuffer(0x5, 3)
        # A partial field is not a clean end.
        with pytest.raises(EOFError) as exc:
            read_field(io.BytesIO(b'\x01'), BitBuffer(),
                       TemplateEntry('uint16_be'))
        assert not isinstance(exc.value, EndOfStream)

    def test_float_misaligned(self):
        fh = io.BytesIO(bytes(8))
        bb = BitBuffer()
        read_field(fh, bb, TemplateEntry('uint4_be'))
        with pytest.raises(MisalignedReadError):
            read_field(fh, bb, TemplateEntry('float_be'))

    def test_capacity(self):
        fh = io.BytesIO(bytes(16))
        bb = BitBuffer()
        read_field(fh, bb, TemplateEntry('uint4_be'))
        with pytest.raises(CapacityError):
            read_field(fh, bb, TemplateEntry('uint64_be'))
        assert bb.bits_avail == 4

    def test_description(self):
        fh = io.BytesIO(b'\x05')
        field = read_field(fh, BitBuffer(), TemplateEntry('uint8_le', 'n'))
        assert field == Field(5, FieldType('uint', 8, LITTLE), 'n')


class TestWriteField:
    def test_bits_be(self):
        fh, bb = write_all([Field(7, FieldType('uint', 3), 'a'),
                            Field(2, FieldType('int', 4), 'b'),
                            Field(1, FieldType('uint', 1), 'c')])
        assert fh.getvalue() == b'\xe5'
        assert bb.is_empty()

    def test_bits_le(self):
        fh, bb = write_all([Field(1, FieldType('uint', 3, LITTLE), 'a'),
                            Field(2, FieldType('uint', 4, LITTLE), 'b'),
                            Field(1, FieldType('uint', 1, LITTLE), 'c')])
        assert fh.getvalue() == b'\x91'

    def test_partial_staged(self):
        fh, bb = write_all([Field(0xabc, FieldType('uint', 12), 'a')])
        assert fh.getvalue() == b''
        assert bb == BitBuffer(0xabc, 12)
        write_field(fh, bb, Field(0xd, FieldType('uint', 4), 'b'))
        assert fh.getvalue() == b'\xab\xcd'

    @pytest.mark.parametrize('typ,value,data', [
        ('uint16_be', 0x1234, b'\x12\x34'),
        ('int16_le', -2, b'\xfe\xff'),
        ('uint32_le', 0x12345678, b'\x78\x56\x34\x12'),
        ('float_le', np.float32(np.pi), b'\xdb\x0f\x49\x40'),
        ('float_be', 1., b'\x3f\x80\x00\x00'),
        ('double_be', np.pi, b'\x40\x09\x21\xfb\x54\x44\x2d\x18'),
        ('uint64_le', 4, b'\x04' + bytes(7))])
    def test_full_container(self, typ, value, data):
        field = TemplateEntry(typ).field(value)
        fh, bb = write_all([field])
        assert fh.getvalue() == data
        # Going through the bit buffer gives the same bytes.
        bb.push_value(field.value, field.typ.num_bits, field.typ.endianness)
        assert bytes(bb.drain(field.typ.endianness)) == data

    def test_after_partial(self):
        fh, bb = write_all([Field(0xf, FieldType('uint', 4), 'a'),
                            Field(0x1234, FieldType('uint', 16), 'b'),
                            Field(0, FieldType('uint', 4), 'c')])
        assert fh.getvalue() == b'\xf1\x23\x40'


class TestRecords:
    @pytest.mark.parametrize('template,values', [
        (Template([('uint3_be', 'a'), ('int5_be', 'b'),
                   ('uint12_be', 'c'), ('int4_be', 'd'),
                   ('float_be', 'e'), ('uint64_be', 'f'),
                   ('int7_be', 'g'), ('uint1_be', 'h')]),
         [5, -7, 0xabc, -8, 1.5, 2**64 - 1, -64, 1]),
        (Template([('uint3_le', 'a'), ('int5_le', 'b'),
                   ('uint12_le', 'c'), ('int4_le', 'd'),
                   ('float_le', 'e'), ('uint64_le', 'f'),
                   ('int7_le', 'g'), ('uint1_le', 'h')]),
         [5, -7, 0xabc, -8, 1.5, 2**64 - 1, -64, 1]),
        (Template([('uint3_le', 'a'), ('int5_le', 'b'),
                   ('uint16_be', 'c'), ('float_le', 'd'),
                   ('int12_be', 'e'), ('uint4_be', 'f'),
                   ('double_be', 'g'), ('uint8_le', 'h')]),
         [2, 15, 0xbeef, -0.25, -2048, 9, 1e100, 0x7f]),
        # Byte order changes after bitfields that loaded a larger container.
        (Template([('uint4_be:32', 'a'), ('uint4_be:32', 'b'),
                   ('uint16_le', 'c'), ('uint8_be', 'd')]),
         [1, 2, 0x1234, 0x56]),
        (Template([('uint4_le:32', 'a'), ('uint4_le:32', 'b'),
                   ('uint16_be', 'c'), ('uint8_le', 'd')]),
         [1, 2, 0x1234, 0x56])])
    def test_round_trip(self, template, values):
        fields = template.fields(values)
        fh, bb = write_all(fields)
        assert bb.is_empty()
        assert len(fh.getvalue()) == template.nbytes
        fh.seek(0)
        decoded = read_record(fh, BitBuffer(), template)
        assert decoded == fields
        assert [type(field.value) for field in decoded] == [
            type(field.value) for field in fields]

    def test_end_of_stream(self):
        template = Template([('uint16_be', 'a')])
        with pytest.raises(EndOfStream):
            read_record(io.BytesIO(b''), BitBuffer(), template)
        # Left-over padding bits also count as a clean end.
        with pytest.raises(EndOfStream):
            read_record(io.BytesIO(b''), BitBuffer(0, 5), template)

    def test_truncated(self):
        template = Template([('uint8_be', 'a'), ('uint16_be', 'b')])
        with pytest.raises(EOFError, match="field 1 \\('b'\\)") as exc:
            read_record(io.BytesIO(b'\x01\x02'), BitBuffer(), template)
        assert not isinstance(exc.value, EndOfStream)

    def test_partial_first_field(self):
        template = Template([('uint16_be', 'a'), ('uint8_be', 'b')])
        with pytest.raises(EOFError, match="field 0 \\('a'\\)") as exc:
            read_record(io.BytesIO(b'\x01'), BitBuffer(), template)
        assert not isinstance(exc.value, EndOfStream)

        fh = io.BytesIO(b'\x00\x01\x02\xff')
        bb = BitBuffer()
        assert [f.value for f in read_record(fh, bb, template)] == [1, 2]
        with pytest.raises(EOFError) as exc:
            read_record(fh, bb, template)
        assert not isinstance(exc.value, EndOfStream)

    def test_mixed_byte_order_staged(self):
        fh = io.BytesIO(b'\x12\x34\x12\x56')
        bb = BitBuffer()
        template = Template([('uint4_be:32', 'a'), ('uint4_be:32', 'b'),
                             ('uint16_le', 'c'), ('uint8_be', 'd')])
        values = [f.value for f in read_record(fh, bb, template)]
        assert values == [1, 2, 0x1234, 0x56]
        assert bb.is_empty()

    def test_pad_be(self):
        fh = io.BytesIO()
        bb = BitBuffer()
        write_field(fh, bb, Field(5, FieldType('uint', 3), 'a'))
        assert pad_record(fh, bb) == 5
        assert fh.getvalue() == b'\xa0'
        assert bb.is_empty()
        assert pad_record(fh, bb) == 0
        assert fh.getvalue() == b'\xa0'

    def test_pad_le(self):
        fh = io.BytesIO()
        bb = BitBuffer()
        write_field(fh, bb, Field(5, FieldType('uint', 3, LITTLE), 'a'))
        assert pad_record(fh, bb, LITTLE) == 5
        assert fh.getvalue() == b'\x05'

    def test_align(self):
        bb = BitBuffer(0xabc, 12)
        assert align_record(bb) == 4
        assert bb == BitBuffer(0xbc, 8)
        bb = BitBuffer(0xabc, 12)
        assert align_record(bb, LITTLE) == 4
        assert bb == BitBuffer(0xab, 8)
        assert align_record(bb, LITTLE) == 0

    def test_pad_flushes_staged_bytes(self):
        fh = io.BytesIO()
        bb = BitBuffer(0xabcd, 16)
        assert pad_record(fh, bb, BIG) == 0
        assert fh.getvalue() == b'\xab\xcd'
