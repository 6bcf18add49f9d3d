"""
Packaging services — the leaf components of the per-artifact pipeline.

Each module does one job (resolve, fetch, extract, relocate, describe,
build) and raises a ``RepackError`` subclass when it cannot.
"""
