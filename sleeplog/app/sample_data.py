"""Helpers for loading the bundled sample sleep log."""

from datetime import datetime
from pathlib import Path
from typing import List, Union

import yaml

from sleeplog.app.sleep_core import SleepState

DEFAULT_SAMPLE_FILE = Path(__file__).parent / "sample_sleep.yaml"


def load_sample_sleep(sample_file: Union[str, Path] = DEFAULT_SAMPLE_FILE) -> List[tuple[datetime, SleepState]]:
    path = Path(sample_file)
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}

    entries = data.get("sleep_times") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ValueError(f"sleep_times list not found in {path}")

    return [(datetime.fromisoformat(str(entry["start"])), SleepState(entry["state"])) for entry in entries]
