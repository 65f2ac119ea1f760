"""packlint - declarative policy checks for data packs."""

__version__ = "0.4.0"
