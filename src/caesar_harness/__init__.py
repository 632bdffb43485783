"""caesar-harness — load a Caesar-cipher shared library and run it over a file.

The library is opened at run time, its ``set_key`` and ``caesar`` entry
points are resolved by name, and the input file is transformed into the
output file through them.
"""

from caesar_harness.version import __version__

__all__: list[str] = ["__version__"]
