"""HTTP client for Hive ImageHoster uploads.

Security notes:
- Treat server responses as untrusted input.
- Avoid printing or logging raw file bytes.
"""

from .http import HttpResponse, ImageHostClient, build_upload_url  # noqa: F401
from .uploader import DEFAULT_IMAGE_HOST, upload, upload_image  # noqa: F401
