import sys

from backend.db import init_db
from backend.seed import seed_storage
from backend.storage import DatabaseStorage


def main():
    init_db()
    storage = DatabaseStorage()
    if not storage.is_empty():
        print("Database already contains cases, skipping seed")
        return 0
    case = seed_storage(storage)
    print(f"Seeded database with case {case.case_number}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
