"""Core schema logic: inference, labeling, validation and ingestion alignment.

Everything in this package is synchronous and free of I/O so it can run
concurrently for independent documents against a shared schema snapshot.
"""
