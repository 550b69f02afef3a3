"""URL queue files: ``queue.txt`` in, ``queue-done.txt`` out."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

import structlog

logger = structlog.get_logger(__name__)


def parse_queue(text: str) -> List[str]:
    """Product URLs from queue text; blanks, ``#`` comments and non-http lines are skipped."""
    urls = []
    for line in (text or "").splitlines():
        line = line.strip()
        if line and not line.startswith("#") and line.startswith("http"):
            urls.append(line)
    return urls


def read_queue(path: Path) -> List[str]:
    path = Path(path)
    if not path.exists():
        logger.warning("queue_missing", path=str(path))
        return []
    return parse_queue(path.read_text(encoding="utf-8"))


def finalize_queue(
    queue_path: Path,
    done_path: Path,
    processed: Iterable[str],
    failed: Iterable[str],
) -> None:
    """Append processed URLs to the done file and keep only failures queued.

    Failed URLs stay in the queue so the next run picks them up again.
    """
    processed = list(processed)
    failed = list(failed)

    if processed:
        done_path = Path(done_path)
        done_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
        with done_path.open("a", encoding="utf-8") as f:
            f.write(f"\n# Processed {stamp}\n")
            for url in processed:
                f.write(url + "\n")

    # Comment lines in the queue survive; URLs are replaced by the failures
    queue_path = Path(queue_path)
    header = []
    if queue_path.exists():
        header = [
            line for line in queue_path.read_text(encoding="utf-8").splitlines()
            if line.startswith("#")
        ]
    lines = header + failed
    queue_path.write_text("\n".join(lines) + "\n" if lines else "", encoding="utf-8")
    logger.info("queue_finalized", processed=len(processed), failed=len(failed))
