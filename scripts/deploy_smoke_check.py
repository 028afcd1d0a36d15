"""Post-deploy smoke checks executed from the app container."""

from __future__ import annotations

import json
import urllib.error
import urllib.request

from app.core.config import get_settings
from app.core.enums import RoleEnum
from app.core.security import create_access_token

BASE_URL = "http://localhost:8000"


def request(
    path: str,
    *,
    method: str = "GET",
    body: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    expected: int = 200,
) -> bytes:
    payload = None
    req_headers = {"Accept": "application/json"}
    if headers:
        req_headers.update(headers)
    if body is not None:
        payload = json.dumps(body).encode("utf-8")
        req_headers["Content-Type"] = "application/json"

    request_obj = urllib.request.Request(
        f"{BASE_URL}{path}",
        data=payload,
        method=method,
        headers=req_headers,
    )
    try:
        with urllib.request.urlopen(request_obj, timeout=30) as response:
            content = response.read()
            status = response.getcode()
    except urllib.error.HTTPError as exc:  # pragma: no cover - runtime smoke script
        body_text = exc.read().decode("utf-8", errors="ignore")
        raise RuntimeError(f"{method} {path} -> {exc.code}: {body_text}") from exc

    if status != expected:
        raise RuntimeError(f"{method} {path} -> {status}, expected {expected}")
    return content


def main() -> None:
    settings = get_settings()
    for endpoint in ["/health", "/ready", "/docs", "/metrics"]:
        request(endpoint, expected=200)

    catalog = json.loads(request(f"{settings.api_prefix}/classes").decode("utf-8"))
    print(f"Catalog lists {catalog['total']} classes (source: {catalog['sync']['source']}).")

    token = create_access_token("deploy-smoke", role=RoleEnum.STUDENT.value, name="Deploy Smoke")
    request(
        f"{settings.api_prefix}/identity/me",
        headers={"Authorization": f"Bearer {token}"},
        expected=200,
    )
    request(
        f"{settings.api_prefix}/dashboard",
        headers={"Authorization": f"Bearer {token}"},
        expected=200,
    )

    print("Smoke checks passed.")


if __name__ == "__main__":
    main()
