"""Core synchronization engine: stores, file formats and file synchronizer."""
