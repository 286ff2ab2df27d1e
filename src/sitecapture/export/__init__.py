"""Export sinks: message, archive, file."""

from .auth import Credential, CredentialProvider, StaticCredentialProvider, require_token
from .naming import archive_filename, document_filename, sanitize, timestamp_slug
from .mail import MessageClient, build_message, encode_raw
from .dispatcher import ExportDispatcher, ExportResult, Sink, build_archive

__all__ = [
    "Credential",
    "CredentialProvider",
    "StaticCredentialProvider",
    "require_token",
    "archive_filename",
    "document_filename",
    "sanitize",
    "timestamp_slug",
    "MessageClient",
    "build_message",
    "encode_raw",
    "ExportDispatcher",
    "ExportResult",
    "Sink",
    "build_archive",
]
