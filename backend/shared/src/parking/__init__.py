"""Core domain package for the parking pricing and payments backend."""

__version__ = "0.1.0"
