"""debrepack — repackage upstream release artifacts as Debian packages."""

__version__ = "0.1.0"
