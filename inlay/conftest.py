# Licensed under the GPLv3 - see LICENSE.rst
"""Configure pytest to list the versions of inlay and its dependencies."""
try:
    from pytest_astropy_header.display import (PYTEST_HEADER_MODULES,
                                               TESTED_VERSIONS)
except ImportError:
    pass
else:
    def pytest_configure(config):
        config.option.astropy_header = True

        PYTEST_HEADER_MODULES.clear()
        PYTEST_HEADER_MODULES['Numpy'] = 'numpy'
        PYTEST_HEADER_MODULES['Astropy'] = 'astropy'

        from . import __version__
        TESTED_VERSIONS['inlay'] = __version__ or 'from source'
