#!/usr/bin/env python3
"""Submit a task to a running TaskSwarm server and print the outcome.

Usage:
  uv run python scripts/run_task.py "Find the title of example.com"
  uv run python scripts/run_task.py --via-langserve --context lang=en "Summarize this page"
"""

from __future__ import annotations

import argparse
import json
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx


def _parse_context(pairs: list[str] | None) -> dict[str, str]:
    context: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise SystemExit(f"--context expects key=value, got {pair!r}")
        context[key] = value
    return context


def _extract_output(resp: dict[str, Any]) -> dict[str, Any]:
    # LangServe wraps the result in {"output": ...}
    output = resp.get("output")
    return output if isinstance(output, dict) else resp


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("task")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--context", action="append", default=None, help="key=value, repeatable")
    parser.add_argument("--via-langserve", action="store_true", help="Use /swarm/invoke instead of /tasks")
    parser.add_argument("--out", default=None, help="Directory to save the raw JSON response")
    parser.add_argument("--timeout", type=float, default=600.0)
    args = parser.parse_args()

    body = {"task": args.task, "context": _parse_context(args.context)}
    if args.via_langserve:
        url = f"{args.base_url}/swarm/invoke"
        payload: dict[str, Any] = {"input": body}
    else:
        url = f"{args.base_url}/tasks"
        payload = body

    print(f"POST {url}")
    with httpx.Client(timeout=args.timeout) as client:
        r = client.post(url, json=payload)
        r.raise_for_status()
        resp = r.json()

    output = _extract_output(resp)

    if args.out:
        out_dir = Path(args.out)
        out_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        raw_path = out_dir / f"task_{ts}.json"
        raw_path.write_text(json.dumps(resp, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"Raw response: {raw_path}")

    print(f"Run: {output.get('runId')}")
    for idx, step in enumerate(output.get("plan") or [], start=1):
        results = output.get("stepResults") or []
        result = results[idx - 1] if idx <= len(results) else "(not executed)"
        preview = (result[:220] + "…") if len(result) > 220 else result
        print(f"[{idx:02d}] {step}\n     -> {preview}")

    print("\nResult:")
    print(output.get("result", ""))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
