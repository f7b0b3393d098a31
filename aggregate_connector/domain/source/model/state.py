from enum import StrEnum


class ConnectionState(StrEnum):
    """Lifecycle of a connector instance."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"
