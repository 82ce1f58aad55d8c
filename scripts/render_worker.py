"""Drive the render worker endpoint locally, one job per request.

Stops after `--max-ticks` requests or as soon as the worker reports there was nothing to do.
"""

from __future__ import annotations

import argparse
import os
import sys
import time

import httpx

from apq.utils.env import default_env_path, load_env_file

_ENDPOINT = "/internal/renders/process-one"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
  parser = argparse.ArgumentParser(description="Process queued render jobs through the worker endpoint.")
  parser.add_argument("--base-url", default=os.getenv("APQ_BASE_URL", "http://localhost:8000"), help="Service base URL.")
  parser.add_argument("--max-ticks", type=int, default=10, help="Maximum number of jobs to process.")
  parser.add_argument("--interval", type=float, default=0.0, help="Seconds to sleep between ticks.")
  parser.add_argument("--timeout", type=float, default=180.0, help="Per-request timeout in seconds.")
  return parser.parse_args(argv)


def run(*, base_url: str, secret: str, max_ticks: int, interval: float = 0.0, timeout: float = 180.0, client: httpx.Client | None = None) -> int:
  """Return the number of ticks that did work."""
  owns_client = client is None
  http = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)
  worked = 0
  try:
    for tick in range(1, max_ticks + 1):
      response = http.post(_ENDPOINT, headers={"x-apq-worker-secret": secret})
      payload = response.json() if response.headers.get("content-type", "").startswith("application/json") else {}
      print(f"[tick {tick}] HTTP {response.status_code} {payload}")
      if response.status_code == 403:
        raise SystemExit("Worker secret rejected; check APQ_WORKER_SECRET.")
      if not payload.get("did_work"):
        break
      worked += 1
      if interval > 0:
        time.sleep(interval)
  finally:
    if owns_client:
      http.close()
  return worked


def main(argv: list[str] | None = None) -> int:
  load_env_file(default_env_path())
  args = _parse_args(argv)
  secret = (os.getenv("APQ_WORKER_SECRET") or "").strip()
  if not secret:
    print("APQ_WORKER_SECRET must be set.", file=sys.stderr)
    return 2
  worked = run(base_url=args.base_url, secret=secret, max_ticks=args.max_ticks, interval=args.interval, timeout=args.timeout)
  print(f"Processed {worked} job(s).")
  return 0


if __name__ == "__main__":
  raise SystemExit(main())
