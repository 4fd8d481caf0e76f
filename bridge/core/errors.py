from __future__ import annotations


class BridgeError(Exception):
    """Base class for failures while answering a content message."""


class BackendUnavailableError(BridgeError):
    """Transport failure, timeout or non-2xx status from the backend."""


class BackendProtocolError(BridgeError):
    """The backend answered, but without a usable reply text."""
