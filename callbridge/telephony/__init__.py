"""Telephony media stream protocol."""
