"""Get/set adapter over the RPC framework's per-call metadata bag."""

from __future__ import annotations

from typing import List, MutableMapping, Optional, Tuple

from opentelemetry.propagators.textmap import Getter, Setter

Metadata = MutableMapping[str, str]


class MetadataCarrier:
    """
    Uniform get/set view of a metadata mapping.

    Keys are looked up exactly first, then case-insensitively. An absent key
    reads as ``("", False)``; callers treat an empty value the same as absence.
    """

    def __init__(self, metadata: Metadata) -> None:
        self.metadata = metadata

    def get(self, key: str) -> Tuple[str, bool]:
        value = self.metadata.get(key)
        if value is None:
            lowered = key.lower()
            for name, candidate in self.metadata.items():
                if name.lower() == lowered:
                    value = candidate
                    break
        if value is None:
            return "", False
        return value, True

    def set(self, key: str, value: str) -> None:
        self.metadata[key] = value

    def keys(self) -> List[str]:
        return list(self.metadata.keys())


class MetadataGetter(Getter[Metadata]):
    """OpenTelemetry Getter reading from a metadata bag."""

    def get(self, carrier: Metadata, key: str) -> Optional[List[str]]:
        value, found = MetadataCarrier(carrier).get(key)
        if not found or not value:
            return None
        return [value]

    def keys(self, carrier: Metadata) -> List[str]:
        return MetadataCarrier(carrier).keys()


class MetadataSetter(Setter[Metadata]):
    """OpenTelemetry Setter writing into a metadata bag."""

    def set(self, carrier: Metadata, key: str, value: str) -> None:
        MetadataCarrier(carrier).set(key, value)


metadata_getter = MetadataGetter()
metadata_setter = MetadataSetter()
