import json
from typing import Optional


def to_json(report, indent: Optional[int] = 2) -> str:
    return json.dumps(report.to_dict(), indent=indent, ensure_ascii=False)


def write_json(report, path: str):
    with open(path, "w", encoding="utf-8") as f:
        f.write(to_json(report))
        f.write("\n")
