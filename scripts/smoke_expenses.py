from expense_tracker.main import create_app
from expense_tracker.core.config import Settings
from fastapi.testclient import TestClient
import tempfile
import os
import json


def run():
    with tempfile.TemporaryDirectory() as d:
        db_path = os.path.join(d, "smoke.db")
        settings = Settings(db_path=db_path)
        app = create_app(settings_override=settings)

        results = {}
        with TestClient(app) as client:
            results["health"] = client.get("/health").json()
            results["list_empty"] = client.get("/api/expenses").json()
            for idx, category in enumerate(["Food", "Travel", "Food"], start=1):
                client.post(
                    "/api/expenses",
                    json={
                        "name": f"smoke {idx}",
                        "amount": 10 * idx,
                        "currency": "USD",
                        "category": category,
                        "date": f"2024-01-0{idx}T09:00:00Z",
                    },
                )
            results["page_1"] = client.get(
                "/api/expenses", params={"limit": 2}
            ).json()
            results["food_only"] = client.get(
                "/api/expenses", params={"category": "Food"}
            ).json()["count"]
            results["patch"] = client.patch(
                "/api/expenses/1", json={"amount": 15.5}
            ).json()
            bad = client.post("/api/expenses", json={"amount": 0, "currency": "usd"})
            results["invalid_status"] = bad.status_code
            results["invalid_body"] = bad.json()
            results["delete_status"] = client.delete("/api/expenses/2").status_code
            results["delete_again_status"] = client.delete(
                "/api/expenses/2"
            ).status_code
            results["stats"] = client.get("/api/expenses/stats").json()
        print(json.dumps(results, indent=2))


if __name__ == "__main__":
    run()
