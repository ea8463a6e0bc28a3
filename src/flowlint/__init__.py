"""flowlint - static checks for wired dataflow programs."""

__version__ = "0.1.0"
