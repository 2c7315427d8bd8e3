"""
Top-level module for gaflib: GAF path parsing, walk validation, ingestion and querying.

The package-wide exception and warning hierarchy lives here so every submodule can import it without cycles.
"""


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class GaflibError(Exception):
    """Base class for all gaflib errors."""


class GaflibWarning(Warning): pass
class GafFileWarning(GaflibWarning): pass
