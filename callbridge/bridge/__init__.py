"""Session bridge between a telephony stream and a realtime model.

This module provides the per-call bridging layer:
- SessionBridge: paired socket lifecycle, duplex relay and teardown
- TurnPolicy: when to commit caller audio and request a response
"""

__all__ = [
    "SessionBridge",
    "SessionState",
    "TurnPolicy",
]

from callbridge.bridge.session import SessionBridge, SessionState
from callbridge.bridge.turn_policy import TurnPolicy
