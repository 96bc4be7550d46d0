"""File-based knowledge base of project expertise: records, storage, search and formatting."""

__version__ = "0.3.0"