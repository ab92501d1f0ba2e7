# Licensed under the GPLv3 - see LICENSE.rst
"""Template entries and decoded fields."""
from collections import namedtuple

from .fieldtype import FieldType


__all__ = ['TemplateEntry', 'Field']


class TemplateEntry(namedtuple('TemplateEntry', ['typ', 'description'])):
    """Declaration of a field in a record, without a value.

    Parameters
    ----------
    typ : `~inlay.fieldtype.FieldType` or str
        Type of the field.  Strings are parsed as type descriptors.
    description : str, optional
        Free-form description of the field.
    """
    __slots__ = ()

    def __new__(cls, typ, description=''):
        if not isinstance(typ, FieldType):
            typ = FieldType.fromstring(typ)
        return super().__new__(cls, typ, description)

    @property
    def num_bits(self):
        return self.typ.num_bits

    def field(self, value):
        """Create a field with the given value for this entry."""
        return Field(self.typ.to_value(value), self.typ, self.description)

    def __str__(self):
        return '{0},{1}'.format(self.typ, self.description)


class Field(namedtuple('Field', ['value', 'typ', 'description'])):
    """A value together with its type and description.

    Parameters
    ----------
    value : numpy scalar
        The value, normally of the type given by ``typ.value_type``.
    typ : `~inlay.fieldtype.FieldType`
        How the value is encoded.
    description : str
        Free-form description of the field.
    """
    __slots__ = ()

    @classmethod
    def fromstrings(cls, typ, description, value):
        """Create a field from the textual parts of a CSV row."""
        typ = FieldType.fromstring(typ)
        return cls(typ.parse_value(value), typ, description)

    def to_record(self):
        """Textual representation as a (type, description, value) tuple."""
        return (str(self.typ), self.description,
                self.typ.format_value(self.value))

    def __str__(self):
        return ','.join(self.to_record())
