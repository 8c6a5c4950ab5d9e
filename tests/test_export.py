import json

from mediareader.export import build_report, format_results_text, write_outputs
from mediareader.models import ItemResult, RunSnapshot, RunState


def _snapshot():
    return RunSnapshot(
        state=RunState.COMPLETED,
        progress=100.0,
        results=(
            ItemResult.success("cat.png", "a cat"),
            ItemResult.failure("https://x.test/a.mp4", "HTTP error 500: boom"),
        ),
        total_items=2,
        started_at=10.0,
        finished_at=12.5,
    )


def test_format_results_text():
    text = format_results_text(_snapshot().results)
    assert text == "URL: cat.png\nResult: a cat\n\nURL: https://x.test/a.mp4\nResult: Error: HTTP error 500: boom"


def test_build_report_masks_key_and_summarizes(run_config):
    report = build_report(_snapshot(), run_config)
    assert report["request"]["api_key"] == "********1234"
    assert report["summary"]["succeeded"] == 1
    assert report["summary"]["failed"] == 1
    assert report["summary"]["state"] == "completed"
    assert report["summary"]["duration_seconds"] == 2.5
    assert report["results"][1] == {"source": "https://x.test/a.mp4", "text": "Error: HTTP error 500: boom", "is_error": True}


def test_write_outputs(tmp_path, run_config):
    paths = write_outputs(_snapshot(), run_config, tmp_path / "out")
    assert [path.name for path in paths] == ["results.txt", "report.json"]
    assert paths[0].read_text(encoding="utf-8").startswith("URL: cat.png")
    assert json.loads(paths[1].read_text(encoding="utf-8"))["summary"]["total"] == 2
