#!/usr/bin/env python3
"""Compile the schema definitions and write the schema artifact once.

Runs the same compile as the reconciler and ``POST /api/schema/generate``,
without starting the schedule.

Usage:
    python scripts/generate_schema.py
    python scripts/generate_schema.py --output client/src/generated/schema.json
    python scripts/generate_schema.py --stdout
"""

import argparse
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Never start the schedule from a one-off run (read when the config is imported)
os.environ["SCHEMA_SYNC_AUTOSTART"] = "false"

from apps.api.main import create_app  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate the schema artifact")
    parser.add_argument(
        "--config", default=os.getenv("FLASK_ENV", "development"), help="Configuration name"
    )
    parser.add_argument("--output", help="Artifact path (default: SCHEMA_ARTIFACT_PATH)")
    parser.add_argument(
        "--stdout", action="store_true", help="Print the schema instead of writing it"
    )
    args = parser.parse_args()

    app = create_app(args.config, asgi=False)

    with app.app_context():
        compiler = app.extensions["schema_compiler"]
        if args.stdout:
            sys.stdout.write(compiler.render(compiler.compile()))
            return 0

        reconciler = app.extensions["schema_reconciler"]
        if args.output:
            reconciler.artifact_path = args.output
        result = reconciler.force_update()
        print(f"Wrote {result['tables']} tables to {result['path']} (sha256 {result['checksum']})")
        reconciler.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
