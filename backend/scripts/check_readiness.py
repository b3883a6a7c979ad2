#!/usr/bin/env python3
"""
Check that the alarm service can take webhook traffic: settings load, runtime
packages import, the database answers, and Firebase credentials are usable when
PUSH_ENABLED is set.

Usage (from repo root):
  cd backend && .venv/bin/python scripts/check_readiness.py [--json]

Exits 0 when every required check passes, 1 otherwise. Run it as a deploy
gate before pointing the device relay at a new instance.
"""
import argparse
import json
import sys
from pathlib import Path

# Ensure backend package is on path when run as script
_backend = Path(__file__).resolve().parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

from alarmhub.readiness import is_ready, run_all_checks


def main() -> int:
    parser = argparse.ArgumentParser(description="Alarm service readiness checks")
    parser.add_argument("--json", action="store_true", help="print {ready, checks} as JSON")
    args = parser.parse_args()

    checks = run_all_checks()
    ready, summary = is_ready(checks)
    if args.json:
        print(json.dumps({"ready": ready, "checks": summary}, indent=2))
        return 0 if ready else 1

    for name, msg in summary.items():
        status = "OK" if checks[name][0] else "FAIL"
        print(f"  {name:<9} {status:<4}  {msg}")
    print("")
    if ready:
        print("Alarm service READY: webhook ingestion and push fan-out can start")
        return 0
    print("Alarm service NOT READY: fix the failing checks above")
    return 1


if __name__ == "__main__":
    sys.exit(main())
