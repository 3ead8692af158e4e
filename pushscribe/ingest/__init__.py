"""Webhook ingest stage."""

from .server import app, create_app, queue_filename, write_queue_file

__all__ = ["app", "create_app", "queue_filename", "write_queue_file"]
