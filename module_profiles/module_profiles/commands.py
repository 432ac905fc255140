"""
The ``save`` and ``load`` commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from core.discovery import scan_manifests
from core.errors import PrerequisiteError
from core.fetch import HttpFetcher
from core.installer import InstallReport, InstallStatus, ModuleInstaller
from core.settings import InstallerSettings
from shared.profile_format import list_profiles, read_profile, write_profile

from . import logger
from .prompts import InputFn, OutputFn, choose_profile, prompt_save_name

_SEPARATOR = "-" * 52


def run_save(
    settings: InstallerSettings,
    *,
    name: Optional[str] = None,
    search_dir: Optional[Path] = None,
    input_fn: InputFn = input,
) -> int:
    """Scan for manifests and write a profile; returns the process exit code."""
    _logger = logger.get_logger()
    _logger.info("Mode: Save Module Names and Manifest URLs")

    if not _ensure_directory(settings.saves_dir, "save files"):
        return 1

    basename = name.strip() if name is not None else prompt_save_name(input_fn)
    if not basename:
        _logger.error("Error: Output filename cannot be empty. Aborting.")
        return 1

    output_path = settings.saves_dir / f"{basename}{settings.save_extension}"
    if not _ensure_directory(output_path.parent, "output file"):
        return 1

    root = Path(search_dir) if search_dir is not None else settings.search_dir
    _logger.info("Searching for '{}' files in '{}'...", settings.manifest_filename, root)
    _logger.info("Output will be saved to: {}", output_path)
    _logger.info(_SEPARATOR)

    result = scan_manifests(root, manifest_filename=settings.manifest_filename)
    try:
        count = write_profile(output_path, result.records)
    except OSError as exc:
        _logger.error("Error: Could not write save file '{}': {}", output_path, exc)
        return 1

    _logger.info(_SEPARATOR)
    _logger.info(
        "Module name and manifest URL saving finished: {} saved, {} without manifest URL, {} unreadable.",
        count,
        len(result.skipped),
        len(result.errors),
    )
    return 0


def run_load(
    settings: InstallerSettings,
    *,
    install_dir: Optional[Path] = None,
    profile: Optional[str] = None,
    input_fn: InputFn = input,
    output: OutputFn = print,
    fetcher: Optional[HttpFetcher] = None,
) -> int:
    """Install every module of a chosen profile; returns the process exit code."""
    _logger = logger.get_logger()
    _logger.info("Mode: Load (Download & Unzip) Module Packages from Saved Profile")
    _logger.info(_SEPARATOR)

    if not _ensure_directory(settings.saves_dir, "save files"):
        return 1

    save_files = list_profiles(settings.saves_dir, settings.save_extension)
    if profile is not None:
        selected = profile if profile.endswith(settings.save_extension) else profile + settings.save_extension
        if selected not in save_files:
            _logger.error("Error: Save file '{}' not found in '{}'.", selected, settings.saves_dir)
            return 1
    else:
        if not save_files:
            _logger.error(
                "No save files found in '{}' with extension '{}'. "
                "Please create a save file first using the 'save' mode.",
                settings.saves_dir,
                settings.save_extension,
            )
            return 1
        output(f"Available save files in '{settings.saves_dir}':")
        selected = choose_profile(save_files, input_fn=input_fn, output=output)

    profile_path = settings.saves_dir / selected
    _logger.info("Loading modules from: {}", profile_path)
    _logger.info(_SEPARATOR)

    install_root = Path(install_dir) if install_dir is not None else Path(".")
    owns_fetcher = fetcher is None
    if fetcher is None:
        fetcher = HttpFetcher.from_settings(settings)
    try:
        return _install_from_profile(install_root, profile_path, fetcher, settings)
    finally:
        if owns_fetcher:
            fetcher.close()


def _install_from_profile(
    install_root: Path,
    profile_path: Path,
    fetcher: HttpFetcher,
    settings: InstallerSettings,
) -> int:
    _logger = logger.get_logger()
    installer = ModuleInstaller(install_root, fetcher=fetcher, settings=settings)
    try:
        installer.check_prerequisites()
    except PrerequisiteError as exc:
        _logger.error("Error: {} Aborting.", exc)
        return 1

    try:
        records = read_profile(profile_path)
    except (OSError, UnicodeDecodeError) as exc:
        _logger.error("Error: Could not read save file '{}': {}", profile_path, exc)
        return 1

    report = installer.install_profile(records)
    _log_summary(report)
    return 0


def _log_summary(report: InstallReport) -> None:
    _logger = logger.get_logger()
    _logger.info(_SEPARATOR)
    _logger.info(
        "Module loading from profile finished: {} installed, {} already installed, "
        "{} need attention, {} failed.",
        report.count(InstallStatus.INSTALLED),
        report.count(InstallStatus.ALREADY_INSTALLED),
        report.count(InstallStatus.NEEDS_ATTENTION),
        report.count(InstallStatus.FAILED),
    )
    for outcome in report.failures:
        _logger.warning(
            "  {} [{}] {}: {}",
            outcome.status.value,
            outcome.record.display_name,
            outcome.record.manifest_url,
            outcome.error,
        )
    if report.cancelled:
        _logger.warning("Run was cancelled before every module was processed.")


def _ensure_directory(path: Path, purpose: str) -> bool:
    if path.is_dir():
        return True
    _logger = logger.get_logger()
    _logger.info("Creating directory for {}: {}", purpose, path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        _logger.error("Error: Could not create directory for {} '{}': {}. Aborting.", purpose, path, exc)
        return False
    return True
