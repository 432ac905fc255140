"""
module_profiles package.

Command-line front end for saving and reloading module profiles.
"""

__all__ = [
    "commands",
    "logger",
    "prompts",
]
