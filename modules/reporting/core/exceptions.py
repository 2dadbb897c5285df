"""
Custom exceptions for reporting module.
"""

from typing import Optional


class ReportingException(Exception):
    """Base exception for reporting module."""
    pass


class ConfigurationException(ReportingException):
    """Exception raised for configuration errors."""
    pass


class UnsupportedTemplateFormat(ReportingException):
    """Exception raised when a template identifier has an unknown extension."""

    def __init__(self, message: str, template: Optional[str] = None):
        super().__init__(message)
        self.template = template


class TemplateLoadError(ReportingException):
    """Exception raised when a compiled template is missing, corrupt or incompatible."""

    def __init__(self, message: str, template: Optional[str] = None):
        super().__init__(message)
        self.template = template


class TemplateCompileError(ReportingException):
    """Exception raised when template source cannot be compiled."""

    def __init__(self, message: str, template: Optional[str] = None):
        super().__init__(message)
        self.template = template


class InvalidDataSource(ReportingException):
    """Exception raised when a data source variant is absent or untagged."""
    pass


class FillError(ReportingException):
    """Exception raised when a template cannot be filled with data."""

    def __init__(self, message: str, template: Optional[str] = None):
        super().__init__(message)
        self.template = template


class ExportError(ReportingException):
    """Exception raised by exporters."""

    def __init__(self, message: str, export_format: Optional[str] = None):
        super().__init__(message)
        self.export_format = export_format


class SinkWriteError(ReportingException):
    """Exception raised when produced bytes cannot be written to a destination."""

    def __init__(self, message: str, destination: Optional[str] = None):
        super().__init__(message)
        self.destination = destination


class DirectoryNotFoundError(ReportingException):
    """Exception raised when a template directory does not exist."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class XmlParseError(ReportingException):
    """Exception raised when an XML string cannot be parsed."""
    pass
