# Licensed under the GPLv3 - see LICENSE.rst
"""Reading and writing simple binary formats, field by field.

Records are described by a `~inlay.template.Template` of typed fields,
which can be bitfields of any width up to 64 bits, each with its own
endianness.  Use `~inlay.base.open` to read or write binary files of
such records.
"""
from .fieldtype import (BIG, LITTLE, FieldType,  # noqa
                        TypeFormatError, BitWidthError)
from .bitbuffer import BitBuffer, CapacityError, MisalignedReadError  # noqa
from .field import TemplateEntry, Field  # noqa
from .template import Template, TemplateError  # noqa
from .codec import EndOfStream, read_field, write_field  # noqa
from .base import open  # noqa

from importlib.metadata import version as _version, PackageNotFoundError

try:
    __version__ = _version(__name__)
except PackageNotFoundError:
    __version__ = ''

# Define minima for the documentation, but do not bother to explicitly check.
__minimum_python_version__ = '3.10'
__minimum_astropy_version__ = '5.1'
__minimum_numpy_version__ = '1.24'
