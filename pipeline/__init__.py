"""Pipeline components.

This package contains the three conversion stages (header resolution, row
collection, table materialization) and the SQLite sink they write through.
"""
