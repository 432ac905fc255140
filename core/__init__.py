"""
Core helpers for module profiles shared by the save and load commands.
"""

from .installer import InstallReport, InstallStatus, ModuleInstaller  # noqa: F401
from .module_id import sanitize_module_id  # noqa: F401
