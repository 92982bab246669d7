class HiveImageError(Exception):
    """
    Base exception for all hiveimg failures.
    """

    pass


class InputError(HiveImageError):
    """
    Raised when local input (image file, key, signature text) is unusable.
    """

    pass


class ImageReadError(InputError):
    """
    Raised when the image file is missing, unreadable, or over the client cap.
    """

    pass


class KeyDecodeError(InputError):
    """
    Raised when a private key string cannot be decoded.

    The message never contains the key itself.
    """

    pass


class SignatureDecodeError(InputError):
    """
    Raised when a signature string is not a compact recoverable signature.
    """

    pass


class UploadError(HiveImageError):
    """
    Base exception for upload failures reported by the image host.
    """

    pass


class UploadRejected(UploadError):
    """
    Raised when the image host answers with a non-2xx status.
    """

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Image upload failed: {status} {body}")


class MalformedUploadResponse(UploadError):
    """
    Raised when a 2xx response body is not a JSON object with a `url`.
    """

    pass


class ConfigError(HiveImageError):
    """
    Raised when the account or posting key cannot be resolved.
    """

    pass
