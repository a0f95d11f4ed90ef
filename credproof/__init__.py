"""Selectively disclosable identity credentials and paired private checks."""

__version__ = "0.1.0"
