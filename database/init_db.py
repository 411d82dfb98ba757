import os
import sys

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from app import create_app
from app.application.seed_service import seed_demo_data
from app.db import get_db, init_db


app = create_app()


if __name__ == "__main__":
    with app.app_context():
        init_db()
        if os.environ.get("DEMO_SEED", "0").strip().lower() in {"1", "true", "yes", "sim"}:
            db = get_db()
            summary = seed_demo_data(db)
            db.commit()
            print(f"Demo seed: {summary}")
    print("Database initialized.")
