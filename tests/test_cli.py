from __future__ import annotations

import json

import pytest

from core.fetch import HttpFetcher
from core.settings import InstallerSettings
from module_profiles.main import main
from module_profiles.module_profiles.commands import run_load, run_save
from module_profiles.module_profiles.prompts import choose_profile
from shared.profile_format import ProfileRecord, format_record, read_profile, write_profile
from tests.helpers.archives import module_json, zip_bytes
from tests.helpers.fakes import FakeResponse


@pytest.fixture
def settings(tmp_path):
    return InstallerSettings(saves_dir=tmp_path / "saves", search_dir=tmp_path / "Data")


def _answers(*values):
    replies = iter(values)
    return lambda _prompt: next(replies)


def test_no_mode_exits_with_one(capsys):
    assert main([]) == 1
    assert "No mode specified" in capsys.readouterr().err


def test_invalid_mode_exits_with_one():
    with pytest.raises(SystemExit) as excinfo:
        main(["upload"])
    assert excinfo.value.code == 1


def test_load_without_save_files_exits_with_one(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MODULE_PROFILES_SAVES_DIR", str(tmp_path / "saves"))

    assert main(["load"]) == 1
    assert (tmp_path / "saves").is_dir()


def test_save_writes_profile(tmp_path, settings):
    module_dir = settings.search_dir / "modules" / "dice"
    module_dir.mkdir(parents=True)
    (module_dir / "module.json").write_text(
        json.dumps({"title": "Dice So Nice!", "manifest": "https://x/dice.json"}),
        encoding="utf-8",
    )

    assert run_save(settings, input_fn=_answers("my_setup")) == 0

    assert read_profile(settings.saves_dir / "my_setup.txt") == [
        ProfileRecord("Dice So Nice!", "https://x/dice.json")
    ]


def test_save_with_empty_name_exits_with_one(settings):
    assert run_save(settings, input_fn=_answers("   ")) == 1


def test_save_through_main(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "mod").mkdir()
    (tmp_path / "mod" / "module.json").write_text(
        json.dumps({"id": "mod", "manifest": "https://x/mod.json"}), encoding="utf-8"
    )

    assert main(["save", "--name", "here"]) == 0
    assert (tmp_path / "saves" / "here.txt").read_text(encoding="utf-8").strip() == format_record(
        ProfileRecord("mod", "https://x/mod.json")
    )


def test_load_completes_with_zero_despite_failures(tmp_path, settings, session, fetcher):
    session.add_json("https://x/ok.json", {"id": "ok", "download": "https://x/ok.zip"})
    session.add("https://x/ok.zip", FakeResponse(zip_bytes({"module.json": module_json("ok")})))
    write_profile(
        settings.saves_dir / "table.txt",
        [ProfileRecord("Missing", "https://x/missing.json"), ProfileRecord("Ok", "https://x/ok.json")],
    )
    install_dir = tmp_path / "installed"

    exit_code = run_load(
        settings,
        install_dir=install_dir,
        input_fn=_answers("7", "one", "1"),
        output=lambda _line: None,
        fetcher=fetcher,
    )

    assert exit_code == 0
    assert (install_dir / "ok" / "module.json").is_file()
    assert not (install_dir / "Missing").exists()
    assert session.closed is False


def _use_fetcher(monkeypatch, session):
    created = HttpFetcher(session=session, sleep=lambda _seconds: None)
    monkeypatch.setattr(HttpFetcher, "from_settings", classmethod(lambda cls, _settings: created))


def test_load_closes_the_fetcher_it_creates(tmp_path, settings, session, monkeypatch):
    _use_fetcher(monkeypatch, session)
    session.add_json("https://x/ok.json", {"id": "ok", "download": "https://x/ok.zip"})
    session.add("https://x/ok.zip", FakeResponse(zip_bytes({"module.json": module_json("ok")})))
    write_profile(settings.saves_dir / "table.txt", [ProfileRecord("Ok", "https://x/ok.json")])

    assert run_load(settings, install_dir=tmp_path / "installed", profile="table") == 0
    assert session.closed is True


def test_load_closes_the_fetcher_when_prerequisites_fail(tmp_path, settings, session, monkeypatch):
    _use_fetcher(monkeypatch, session)
    write_profile(settings.saves_dir / "table.txt", [ProfileRecord("Ok", "https://x/ok.json")])
    blocker = tmp_path / "installed"
    blocker.write_text("not a directory", encoding="utf-8")

    assert run_load(settings, install_dir=blocker, profile="table") == 1
    assert session.closed is True


def test_load_named_profile_that_does_not_exist(settings, fetcher):
    settings.saves_dir.mkdir(parents=True)
    assert run_load(settings, profile="nope", fetcher=fetcher) == 1


def test_choose_profile_reprompts_until_valid():
    shown = []
    chosen = choose_profile(["a.txt", "b.txt"], input_fn=_answers("0", "x", "\u00b2", "2"), output=shown.append)

    assert chosen == "b.txt"
    assert shown.count("Invalid selection. Please enter a number from the list.") == 3
