"""Exceptions raised by the decoration pipeline's collaborators."""


class FlowLogError(Exception):
    """Base class for decorator errors."""


class DirectoryError(FlowLogError):
    """The network interface inventory could not be retrieved."""


class CredentialError(FlowLogError):
    """The geocode API credential could not be retrieved."""


class GeoProviderError(FlowLogError):
    """The geocode provider answered with an unexpected status."""

    def __init__(self, status_code: int, address: str):
        super().__init__(f"Geocode request for {address} failed with status code {status_code}")
        self.status_code = status_code
        self.address = address
