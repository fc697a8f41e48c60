#!/usr/bin/env python
"""Load a .json/.jsonl question file into the configured database (dev seeding)."""
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bank import import_questions  # noqa: E402
from db import SessionLocal  # noqa: E402


def main(argv: list[str]) -> int:
    if len(argv) != 1:
        print("usage: seed_questions.py <questions.json|questions.jsonl>")
        return 2

    path = Path(argv[0])
    if not path.is_file():
        print(f"Error: {path} does not exist")
        return 1

    with SessionLocal() as db:
        n = import_questions(db, path)
    print(f"Imported {n} questions from {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
