"""HTTP download responses for exported reports (FastAPI)."""

from typing import Optional

from fastapi import Response

from modules.reporting.core.interfaces import ExportFormat, ExportOutput


def build_download_response(
    data: ExportOutput,
    export_format: ExportFormat,
    filename: Optional[str] = None
) -> Response:
    """
    Wrap exported output in an attachment response.

    Args:
        data: Exporter output (bytes, text or binary stream)
        export_format: Format the data was exported to
        filename: Download file name (defaults to "report" plus the format extension)

    Returns:
        FastAPI Response with the format's media type
    """
    export_format = ExportFormat(export_format)
    if isinstance(data, str):
        content = data.encode("utf-8")
    elif isinstance(data, (bytes, bytearray)):
        content = bytes(data)
    else:
        content = data.read()

    filename = filename or f"report{export_format.extension}"
    return Response(
        content=content,
        media_type=export_format.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
