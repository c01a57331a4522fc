"""Audio processing constants."""


class AudioConstants:
    """Audio format constants for telephony and model audio."""

    # Sample rates
    TELEPHONY_SAMPLE_RATE = 8000  # Twilio Media Streams, μ-law
    MODEL_SAMPLE_RATE = 16000     # Realtime model input/output PCM16

    # Turn taking
    COMMIT_EVERY_CHUNKS = 15  # ~0.3s of 20ms chunks per forced turn

    # Outbound buffering before streamSid is known
    PENDING_OUTPUT_MAX_FRAMES = 500

    # Logging intervals
    LOG_INTERVAL_FRAMES = 50   # Log every 50 frames (1 second @ 20ms)
