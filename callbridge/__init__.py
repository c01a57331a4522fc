"""Telephony media stream to realtime voice model bridge.

Bridges 8kHz μ-law telephony audio (Twilio Media Streams) with a 16kHz
PCM16 realtime model WebSocket (OpenAI Realtime), one session per call.
"""

__version__ = "0.1.0"
