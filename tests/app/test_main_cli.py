from __future__ import annotations

import io
import json
import logging
from typing import TYPE_CHECKING

import pytest

from trackersync.config import MissingConfigurationError
from trackersync.domain.errors import UpstreamError, ValidationError
from trackersync.domain.reconciliation import ReconcileResult
from trackersync.ui import cli as cli_module

if TYPE_CHECKING:
    from pathlib import Path


def test_reconcile_prints_result(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(
        cli_module,
        "reconcile_tracker",
        lambda: ReconcileResult(updated=False, reasoning="No changes"),
    )

    cli_module.main(["reconcile"])

    assert json.loads(capsys.readouterr().out) == {"updated": False, "reasoning": "No changes"}


def test_classify_reads_article_file(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    captured: dict[str, str] = {}

    def fake_classify(schema_name: str, article: str) -> dict[str, object]:
        captured.update(schema_name=schema_name, article=article)
        return {"found": False}

    monkeypatch.setattr(cli_module, "classify_document", fake_classify)
    article = tmp_path / "article.txt"
    article.write_text("Weather report", encoding="utf-8")

    cli_module.main(["classify", "--type", "iceIncident", "--file", str(article)])

    assert captured == {"schema_name": "iceIncident", "article": "Weather report"}
    assert json.loads(capsys.readouterr().out) == {"found": False}


def test_classify_reads_stdin_by_default(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(cli_module.sys, "stdin", io.StringIO("from stdin"))
    monkeypatch.setattr(
        cli_module,
        "classify_document",
        lambda schema_name, article: {"found": True, "article": article, "type": schema_name},
    )

    cli_module.main(["classify", "--type", "brokenPromise"])

    assert json.loads(capsys.readouterr().out)["article"] == "from stdin"


def test_seed_loads_json_object(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    tmp_path: Path,
) -> None:
    captured: list[dict[str, object]] = []

    def fake_seed(data: dict[str, object]) -> bool:
        captured.append(data)
        return True

    monkeypatch.setattr(cli_module, "seed_tracker", fake_seed)
    seed_file = tmp_path / "seed.json"
    seed_file.write_text(json.dumps({"debt": {"total": 36.2}}), encoding="utf-8")

    cli_module.main(["seed", str(seed_file)])

    assert captured == [{"debt": {"total": 36.2}}]
    assert json.loads(capsys.readouterr().out) == {"created": True}


def test_seed_rejects_non_object(tmp_path: Path) -> None:
    seed_file = tmp_path / "seed.json"
    seed_file.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["seed", str(seed_file)])

    assert excinfo.value.code == 2


def test_missing_configuration_exits_with_2(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_reconcile() -> ReconcileResult:
        raise MissingConfigurationError("Missing configuration for: GEMINI_API_KEY")

    monkeypatch.setattr(cli_module, "reconcile_tracker", fake_reconcile)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["reconcile"])

    assert excinfo.value.code == 2


def test_unknown_schema_exits_with_2(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_classify(schema_name: str, article: str) -> dict[str, object]:  # noqa: ARG001
        raise ValidationError(f"Invalid type: {schema_name}")

    monkeypatch.setattr(cli_module, "classify_document", fake_classify)
    monkeypatch.setattr(cli_module.sys, "stdin", io.StringIO("article"))

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["classify", "--type", "horoscope"])

    assert excinfo.value.code == 2

def test_runtime_failure_exits_with_1(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_reconcile() -> ReconcileResult:
        raise UpstreamError("Gemini error: 503 - unavailable", status=503)

    monkeypatch.setattr(cli_module, "reconcile_tracker", fake_reconcile)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["reconcile"])

    assert excinfo.value.code == 1


def test_unknown_command_exits_with_2() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["sync-everything"])

    assert excinfo.value.code == 2


def test_serve_runs_uvicorn(monkeypatch: pytest.MonkeyPatch) -> None:
    import uvicorn

    captured: dict[str, object] = {}

    def fake_run(app: object, **kwargs: object) -> None:
        captured.update(kwargs, app=app)

    monkeypatch.setattr(uvicorn, "run", fake_run)

    cli_module.main(["serve", "--host", "0.0.0.0", "--port", "9000"])  # noqa: S104

    assert captured["host"] == "0.0.0.0"  # noqa: S104
    assert captured["port"] == 9000


def test_log_level_is_passed_to_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    levels: list[int] = []
    monkeypatch.setattr(cli_module, "configure_logging", lambda *, level: levels.append(level))
    monkeypatch.setattr(
        cli_module,
        "reconcile_tracker",
        lambda: ReconcileResult(updated=False, reasoning="No changes"),
    )

    cli_module.main(["--log-level", "debug", "reconcile"])

    assert levels == [logging.DEBUG]
