"""
Typed failures raised while preparing a chat stream.

Each error maps to one HTTP status. The response body never carries the
error detail, only the generic message from models.chat.
"""


class ChatError(Exception):
    status_code = 500


class InvalidChatRequest(ChatError):
    # Stays 500: the browser client only distinguishes ok / not ok.
    status_code = 500


class BackendNotConfigured(ChatError):
    status_code = 500


class UpstreamUnavailable(ChatError):
    status_code = 502


class UpstreamTimeout(ChatError):
    status_code = 504


class UpstreamProtocolError(ChatError):
    status_code = 502
