import json
from pathlib import Path


def read_jsonl_file(file_path: str | Path) -> list[dict]:
    """Read a JSONL file and return its JSON objects, skipping blank lines

    Args:
        file_path (str | Path): The path to the file to read
    """
    with open(file_path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f.readlines() if line.strip()]


def read_text_file(file_path: str | Path | None) -> str | None:
    """Read a UTF-8 text file, or return None when no path is given

    Args:
        file_path (str | Path | None): The path to the file to read
    """
    if file_path is None:
        return None
    return Path(file_path).read_text(encoding="utf-8")
