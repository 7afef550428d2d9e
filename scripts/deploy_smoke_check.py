"""Post-deploy smoke checks executed from the app container."""

from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from datetime import date, timedelta
from uuid import uuid4

BASE_URL = os.getenv("SMOKE_BASE_URL", "http://localhost:8000")
SMOKE_SERVICE_ID = os.getenv("SMOKE_SERVICE_ID")


def request(path: str, *, expected: int = 200) -> bytes:
    request_obj = urllib.request.Request(
        f"{BASE_URL}{path}",
        method="GET",
        headers={"Accept": "application/json"},
    )
    try:
        with urllib.request.urlopen(request_obj, timeout=30) as response:
            content = response.read()
            status = response.getcode()
    except urllib.error.HTTPError as exc:  # pragma: no cover - runtime smoke script
        if exc.code == expected:
            return exc.read()
        body_text = exc.read().decode("utf-8", errors="ignore")
        raise RuntimeError(f"GET {path} -> {exc.code}: {body_text}") from exc

    if status != expected:
        raise RuntimeError(f"GET {path} -> {status}, expected {expected}")
    return content


def main() -> None:
    for endpoint in ["/health", "/ready", "/docs", "/metrics"]:
        request(endpoint, expected=200)

    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    missing = json.loads(
        request(
            f"/api/v1/availability?entity_id={uuid4()}&entity_type=service&date={tomorrow}",
            expected=404,
        ).decode("utf-8"),
    )
    if missing.get("error", {}).get("code") != "not_found":
        raise RuntimeError(f"Unexpected error payload: {missing}")

    if SMOKE_SERVICE_ID:
        availability = json.loads(
            request(
                f"/api/v1/availability?entity_id={SMOKE_SERVICE_ID}&entity_type=service&date={tomorrow}",
            ).decode("utf-8"),
        )
        print(f"Availability for {tomorrow}: {len(availability['available_slots'])} slots")

    print("Smoke checks passed.")


if __name__ == "__main__":
    main()
