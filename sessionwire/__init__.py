"""Client message framing, session payloads and retry helpers for session data channels."""

__version__ = "0.1.0"
__all__ = ["binary", "clientmessage", "payloads", "retry", "sdkretry", "service"]