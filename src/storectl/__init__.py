"""storectl — smart store domain engine and command-script runner."""

__version__ = "0.1.0"
