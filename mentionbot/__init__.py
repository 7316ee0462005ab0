"""mentionbot: suggest PR reviewers from the lines a change deletes."""

__version__ = "0.1.0"
