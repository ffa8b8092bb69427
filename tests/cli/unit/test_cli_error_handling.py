"""CLI error-handling tests."""

from __future__ import annotations

import json
from pathlib import Path

from hydra_fragments.bridge import FragmentBridge
from hydra_fragments.cli import main

SAMPLES = Path(__file__).resolve().parents[3] / "samples"


def test_missing_required_option_returns_clean_click_error(capsys) -> None:
    exit_code = main(["split", "--input", "/tmp/catalog.json"])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "Missing option" in captured.err
    assert "--config" in captured.err
    assert "Traceback" not in captured.err


def test_unknown_option_returns_clean_click_error(capsys) -> None:
    exit_code = main(["assemble", "--bogus"])
    captured = capsys.readouterr()

    assert exit_code == 2
    assert "No such option" in captured.err
    assert "--bogus" in captured.err
    assert "Traceback" not in captured.err


def test_domain_errors_are_reported_without_traceback(tmp_path: Path, capsys) -> None:
    exit_code = main(["assemble", "--config", str(tmp_path / "missing.yaml")])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Configuration file not found" in captured.err
    assert "Traceback" not in captured.err


def test_generate_config_refuses_to_overwrite(tmp_path: Path, capsys) -> None:
    output_path = tmp_path / "hydra.yaml"
    output_path.write_text("existing", encoding="utf-8")

    exit_code = main(["generate-config", "--output", str(output_path)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "Configuration file already exists" in captured.err
    assert output_path.read_text(encoding="utf-8") == "existing"


def test_unserializable_assembled_document_is_reported_without_traceback(
    tmp_path: Path, capsys, monkeypatch
) -> None:
    config = {
        "schema": {"path": str(SAMPLES / "catalog-schema.yaml")},
        "storage": {"directory": "fragments"},
        "logging": {"level": "WARNING"},
    }
    config_path = tmp_path / "hydra.json"
    config_path.write_text(json.dumps(config), encoding="utf-8")
    monkeypatch.setattr(
        FragmentBridge, "view", lambda self: {"_tag": "Catalog", "title": object()}
    )

    exit_code = main(["assemble", "--config", str(config_path)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "not JSON-serializable" in captured.err
    assert "Traceback" not in captured.err
