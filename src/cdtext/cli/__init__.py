"""
CD-Text Command-Line Interface
==============================

This package provides the ``cdtext`` command, a click application with
subcommands for dumping entries, listing raw packs, summarising a disc and
validating a dump.
"""

__all__ = ["cdtextdump"]
