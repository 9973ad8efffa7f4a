"""Adapter layer package for identity integration boundaries."""

from .identity import SettingsIdentityProvider

__all__ = ["SettingsIdentityProvider"]
