"""
Sinks for reporting module.

Destinations for exported documents.
"""

from modules.reporting.sinks.file_sink import FileSink
from modules.reporting.sinks.http_sink import build_download_response

__all__ = [
    "FileSink",
    "build_download_response",
]
