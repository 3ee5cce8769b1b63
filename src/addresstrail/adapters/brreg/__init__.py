"""Public interface for the Enhetsregisteret (Brønnøysund) adapter."""

from __future__ import annotations

from .client import DownloadResult, download_export
from .export_file import open_export
from .schema import AddressPayload, CodePayload, EntityPayload
from .translator import RegistryEntityTranslator, organization_number_of, resolve_status

__all__ = [
    "AddressPayload",
    "CodePayload",
    "DownloadResult",
    "EntityPayload",
    "RegistryEntityTranslator",
    "download_export",
    "open_export",
    "organization_number_of",
    "resolve_status",
]
