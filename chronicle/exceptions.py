class ChronicleError(Exception):
    """Base class for failures raised while advancing an adventure."""


class CredentialError(ChronicleError):
    """No usable API key is selected, or the API rejected the selected one."""


class ResponseFormatError(ChronicleError):
    """A structured response was not JSON of the required schema."""

    def __init__(self, message: str, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response


class MissingImageDataError(ChronicleError):
    """The image model answered without any inline image data."""
