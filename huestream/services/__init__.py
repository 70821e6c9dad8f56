from .codec import CHANNEL_RECORD_SIZE, HEADER_SIZE, MAX_PACKET_SIZE, PROTOCOL_NAME, encode_message
from .control_plane import ControlPlaneClient
from .transport import PSK_CIPHER, STREAM_PORT, DtlsTransport, SecureTransport

__all__ = [
    "CHANNEL_RECORD_SIZE",
    "HEADER_SIZE",
    "MAX_PACKET_SIZE",
    "PROTOCOL_NAME",
    "encode_message",
    "ControlPlaneClient",
    "PSK_CIPHER",
    "STREAM_PORT",
    "DtlsTransport",
    "SecureTransport",
]
