from __future__ import annotations

from .installer import InstallResult, Installer, build_installer

__all__ = ["InstallResult", "Installer", "build_installer"]
