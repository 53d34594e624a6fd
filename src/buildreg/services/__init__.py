"""Service layer."""

from buildreg.services.registry import RegistryService

__all__ = ["RegistryService"]
