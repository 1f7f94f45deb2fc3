"""
Peer identities for provider records.

This module provides peer IDs and the peer info values that the content
router hands back from provider lookups.
"""

from .id import ID, PeerIDError
from .peerinfo import PeerInfo

__all__ = [
    "ID",
    "PeerIDError",
    "PeerInfo",
]
