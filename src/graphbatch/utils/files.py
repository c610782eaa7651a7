import json
from pathlib import Path


def read_jsonl_file(file_path: str | Path) -> list[dict]:
    """Read a JSONL file into a list of objects, skipping blank lines

    Args:
        file_path (str | Path): The path to the file to read
    """
    with open(file_path, "r") as f:
        return [json.loads(line) for line in f.readlines() if line.strip()]
