"""Rule-driven scanning of file names and contents for secrets, with loaders, writers and helpers."""

__version__ = "0.1.0"