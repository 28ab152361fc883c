import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CHAT_LOG_FILE = "chat_logs.jsonl"


def _write_jsonl(path: Path, record: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")


def log_chat_call(
    log_dir: Path,
    model: Optional[str],
    backend: Optional[str],
    message_count: int,
    outcome: str,  # "streamed" | "aborted" | "disconnected" | "error"
    status_code: int,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    # Message contents are never written; only request shape and outcome.
    record: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "type": "chat",
        "model": model,
        "backend": backend,
        "message_count": message_count,
        "outcome": outcome,
        "status_code": status_code,
    }
    if extra:
        record["extra"] = extra
    try:
        _write_jsonl(Path(log_dir) / CHAT_LOG_FILE, record)
    except OSError:
        logger.warning("Could not write chat log record to %s", log_dir, exc_info=True)
