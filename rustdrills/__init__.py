"""Compile, run, verify and watch small Rust exercises from the command line."""

__version__ = "5.5.1"