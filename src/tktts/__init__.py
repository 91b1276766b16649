"""Chunked text-to-speech synthesis against a remote speech endpoint."""

__version__ = "0.1.0"
