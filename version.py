"""Project version constants.

These constants are used in logs and in the ``--version`` output of the CLI so
that an import can be traced back to a specific converter build.
"""

ENGINE_NAME: str = "csv2sqlite"
ENGINE_VERSION: str = "0.1.0"
