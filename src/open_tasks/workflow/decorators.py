"""Decorators that enrich a StringRef before it is stored."""

from dataclasses import replace
from datetime import timezone

from .types import StringRef, TransformMetadata, utc_now


class TokenDecorator:
    """Sets the ref's token."""

    def __init__(self, token_name: str):
        self.token_name = token_name

    def decorate(self, ref: StringRef) -> StringRef:
        return replace(ref, token=self.token_name)


class FileNameDecorator:
    """Sets the ref's file name verbatim."""

    def __init__(self, file_name: str):
        self.file_name = file_name

    def decorate(self, ref: StringRef) -> StringRef:
        return replace(ref, file_name=self.file_name)


class TimestampedFileNameDecorator:
    """Synthesizes ``{YYYYMMDDTHHMMSS}-{ms}-{token_or_id}.{extension}``.

    The timestamp is taken from the ref (UTC) so the name reflects creation
    time, not decoration time.
    """

    def __init__(self, token_or_id: str, extension: str = "txt"):
        self.token_or_id = token_or_id
        self.extension = extension

    def decorate(self, ref: StringRef) -> StringRef:
        return replace(ref, file_name=format_timestamped_name(ref, self.token_or_id, self.extension))


class MetadataDecorator:
    """Appends one lineage entry to the ref's metadata."""

    def __init__(self, transform_metadata: TransformMetadata):
        self.transform_metadata = transform_metadata

    def decorate(self, ref: StringRef) -> StringRef:
        return replace(ref, metadata=ref.metadata + (self.transform_metadata,))


def format_timestamped_name(ref: StringRef, token_or_id: str, extension: str = "txt") -> str:
    ts = ref.timestamp or utc_now()
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    date_str = ts.strftime("%Y%m%dT%H%M%S")
    ms = ts.microsecond // 1000
    return f"{date_str}-{ms:03d}-{token_or_id}.{extension}"
