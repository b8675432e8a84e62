"""Domain-specific errors for speakerctl."""


class SpeakerctlError(Exception):
    """Base error for speakerctl."""


class ConfigurationError(SpeakerctlError):
    """Raised when the configuration file cannot be read or fails validation."""


class ConfigurationEmptyError(ConfigurationError):
    """Raised when neither strict device rules nor device names are configured."""


class DiscoveryError(SpeakerctlError):
    """Raised when the network discovery socket cannot be opened."""


class DescriptionError(SpeakerctlError):
    """Raised when a device description document cannot be parsed."""


class DescribeError(SpeakerctlError):
    """Raised when describing one discovered device fails."""

    def __init__(self, host: str, cause: BaseException) -> None:
        super().__init__(f"Could not describe device at {host}: {str(cause) or type(cause).__name__}")
        self.host = host
        self.cause = cause


class AccessorySelectionError(SpeakerctlError):
    """Raised when an accessory hint cannot resolve a single accessory."""


class StoreError(SpeakerctlError):
    """Raised when the persisted accessory store cannot be read or written."""


class TransportError(SpeakerctlError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised when an HTTP connection to a device fails."""


class TransportTimeoutError(TransportError):
    """Raised when an HTTP request to a device times out."""


class ControlError(SpeakerctlError):
    """Base error for control-protocol commands."""


class ControlRequestError(ControlError):
    """Raised when a device answers a control request with a non-success status."""

    def __init__(self, host: str, status: int) -> None:
        super().__init__(f"SOAP request to {host} failed with HTTP status {status}")
        self.host = host
        self.status = status


class ControlTransportError(ControlError):
    """Raised when a control request cannot reach the device."""

    def __init__(self, host: str, cause: BaseException) -> None:
        super().__init__(f"SOAP request to {host} failed: {str(cause) or type(cause).__name__}")
        self.host = host
        self.cause = cause
