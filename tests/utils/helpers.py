"""
Test helper functions.
"""

import io

from botocore.exceptions import ClientError
from PIL import Image


def make_image_bytes(fmt: str = "PNG", mode: str = "RGB", size=(32, 32)) -> bytes:
    """Render a small solid image in the given format."""
    if mode == "RGBA":
        color = (200, 40, 40, 128)
    elif mode == "L":
        color = 128
    else:
        color = (200, 40, 40)
    img = Image.new(mode, size, color)
    output = io.BytesIO()
    img.save(output, format=fmt)
    return output.getvalue()


def client_error(code: str, operation_name: str = "HeadObject", status_code: int = 400) -> ClientError:
    """Build a botocore ClientError like S3 returns it."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": code},
            "ResponseMetadata": {"HTTPStatusCode": status_code},
        },
        operation_name,
    )
