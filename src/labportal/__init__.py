"""Lab measurement portal: formula evaluation and cell highlighting service."""

__version__ = "0.1.0"
