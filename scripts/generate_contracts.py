#!/usr/bin/env python3
"""Write contracts/tools.json and tools.md, or with --check fail when they are stale."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from mcp_servers.browser_hub.server.contract import contract_snapshot  # noqa: E402
from mcp_servers.browser_hub.server.contract_docs import render_contract_files, stale_contract_files  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--out", type=Path, default=ROOT / "contracts", help="Output directory")
    parser.add_argument("--check", action="store_true", help="Only compare, exit 1 when files differ")
    args = parser.parse_args(argv)

    snapshot = contract_snapshot()
    if args.check:
        stale = stale_contract_files(args.out, snapshot)
        for name in stale:
            print(f"Stale: {args.out / name}", file=sys.stderr)
        if stale:
            print("Run scripts/generate_contracts.py to refresh.", file=sys.stderr)
        return 1 if stale else 0

    args.out.mkdir(parents=True, exist_ok=True)
    for name, content in render_contract_files(snapshot).items():
        (args.out / name).write_text(content, encoding="utf-8")
        print(f"Wrote: {args.out / name}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
