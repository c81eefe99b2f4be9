"""
Exception types for DHCP6Mod

The modifier core never raises; these are used by the codec adapter,
the message builders and the CLI profile loader.
"""


class DHCP6ModError(Exception):
    """Base class for all DHCP6Mod errors"""


class DecodeError(DHCP6ModError):
    """Raised when raw bytes or a Scapy layer cannot be turned into a packet"""


class MessageShapeError(DHCP6ModError):
    """Raised when a builder receives a packet of the wrong shape or message type"""


class ProfileLoadError(DHCP6ModError):
    """Raised when a modifier profile file cannot be loaded"""
