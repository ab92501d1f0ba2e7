# Licensed under the GPLv3 - see LICENSE.rst
"""Sample templates and data for testing and examples."""

# Use private names to avoid inclusion in the sphinx documentation.
from os import path as _path


def _full_path(name, dirname=_path.dirname(_path.abspath(__file__))):
    return _path.join(dirname, name)


SAMPLE_TEMPLATE = _full_path('sample_template.csv')
"""Template for a record of 8 bytes.

A big-endian 16-bit word split in 4, 8, 2, and 2 bit fields, followed by a
little-endian signed 16-bit integer and a big-endian float.
"""

SAMPLE_BIN = _full_path('sample.bin')
"""Two records following ``SAMPLE_TEMPLATE``.

Fields are (1, 0x23, 1, 0, -2, 3.1415927) and (2, 16, 3, 1, 1000, 1.0).
"""

SAMPLE_ROWS = _full_path('sample_rows.csv')
"""The fields of ``SAMPLE_BIN`` as rows of type,description,value."""
