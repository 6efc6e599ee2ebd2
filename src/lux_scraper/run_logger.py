from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, TextIO

from .time_utils import iso_now


class RunLogger:
    def __init__(
        self,
        root: Path,
        run_id: str,
        mode: str = "run",
        stream: TextIO | None = sys.stderr,
    ) -> None:
        self.run_id = run_id
        self.log_path = root / "logs" / f"{mode}-{run_id}.log"
        self.failures_path = root / "failures" / f"{mode}-{run_id}.jsonl"
        self._stream = stream

    def log(self, message: str) -> None:
        line = f"{iso_now()} {message}\n"
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with self.log_path.open("a", encoding="utf-8") as handle:
            handle.write(line)
        if self._stream is not None:
            self._stream.write(line)
            self._stream.flush()

    def failure(self, record: dict[str, Any]) -> None:
        record_with_time = {"occurred_at": iso_now(), "run_id": self.run_id, **record}
        self.failures_path.parent.mkdir(parents=True, exist_ok=True)
        with self.failures_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record_with_time, ensure_ascii=True) + "\n")
