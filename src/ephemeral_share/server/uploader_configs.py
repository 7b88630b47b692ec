import json

from fastapi import Response


def sharex_config(name: str, site_url: str) -> dict:
    """ShareX custom uploader (.sxcu)."""
    return {
        "Name": name,
        "DestinationType": "ImageUploader, FileUploader",
        "RequestType": "POST",
        "RequestURL": site_url,
        "FileFormName": "file",
        "ResponseType": "Text",
    }


def hupl_config(name: str, site_url: str) -> dict:
    """Hupl uploader for Android (.hupl), это тоже JSON."""
    return {
        "name": name,
        "type": "http",
        "targetUrl": site_url,
        "fileParam": "file",
    }


def attachment(filename: str, payload: dict) -> Response:
    return Response(
        content=json.dumps(payload, indent=2),
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
