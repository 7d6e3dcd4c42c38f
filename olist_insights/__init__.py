"""Descriptive analytics over the Olist e-commerce dataset."""

__version__ = "0.1.0"
