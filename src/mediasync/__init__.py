"""Studio media sync: folder reconciliation and web transcoding pipeline."""

__version__ = "0.4.0"
