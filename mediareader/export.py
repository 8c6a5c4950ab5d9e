from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .config import mask_api_key
from .models import ItemResult, RunConfig, RunSnapshot


def format_results_text(results: Iterable[ItemResult]) -> str:
    return "\n\n".join(f"URL: {item.source_label}\nResult: {item.text}" for item in results)


def build_report(snapshot: RunSnapshot, config: RunConfig) -> Dict[str, Any]:
    return {
        "request": {
            "model": config.model,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "api_key": mask_api_key(config.api_key),
            "prompt": config.prompt_text,
        },
        "results": [item.to_dict() for item in snapshot.results],
        "summary": {
            "total": snapshot.total_items,
            "collected": len(snapshot.results),
            "succeeded": snapshot.succeeded,
            "failed": snapshot.failed,
            "state": snapshot.state.value,
            "progress": round(snapshot.progress, 2),
            "error": snapshot.error,
            "duration_seconds": snapshot.duration_seconds,
        },
    }


def write_outputs(snapshot: RunSnapshot, config: RunConfig, output_dir: Path) -> List[Path]:
    output_dir = Path(output_dir).expanduser()
    output_dir.mkdir(parents=True, exist_ok=True)
    text_path = output_dir / "results.txt"
    report_path = output_dir / "report.json"
    text_path.write_text(format_results_text(snapshot.results) + "\n", encoding="utf-8")
    report_path.write_text(
        json.dumps(build_report(snapshot, config), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    return [text_path, report_path]
