"""copilot-connector - schema inference and ingestion alignment for external connections"""

__version__ = "0.1.0"
