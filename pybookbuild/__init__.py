"""Build HTML, PDF, EPUB and JSON editions of a Markdown book with pandoc."""

__version__ = "0.1.0"
