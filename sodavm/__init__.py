"""A stack-based bytecode virtual machine with a character I/O device."""

__version__ = "0.1.0"