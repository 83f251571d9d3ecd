"""Folio: turns uploaded manuscripts into ordered reading sections."""

__version__ = "1.0.0"
