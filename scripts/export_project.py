#!/usr/bin/env python
"""
Export a project to a zip archive.

Usage:
    python scripts/export_project.py <db_path> <project_id> <output.zip> [--uploads-dir DIR]
"""

import sys
import json
import argparse
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.archive import write_zip
from core.db import open_database
from core.errors import LabelingError
from core.exporter import ExportPackager, MANIFEST_NAME
from core.store import ProjectStore, ImageStore


def main():
    parser = argparse.ArgumentParser(description="Export a labeling project to a zip archive")
    parser.add_argument("db_path", help="Path to the labeling database")
    parser.add_argument("project_id", type=int, help="ID of the project to export")
    parser.add_argument("output", help="Path of the zip file to write")
    parser.add_argument("--uploads-dir", default=str(Path(__file__).parent.parent / "data" / "uploads"),
                        help="Directory holding uploaded images")
    parser.add_argument("--timeout", type=float, default=10.0, help="Timeout for remote images (seconds)")

    args = parser.parse_args()

    if not Path(args.db_path).exists():
        print(f"✗ Database not found: {args.db_path}")
        sys.exit(1)

    conn = open_database(args.db_path)
    packager = ExportPackager(
        ProjectStore(conn),
        ImageStore(conn),
        uploads_dir=args.uploads_dir,
        fetch_timeout=args.timeout,
    )

    print(f"Exporting project {args.project_id} from {args.db_path}")
    print(f"Output: {args.output}")
    print("-" * 50)

    manifest = {}

    def capture_manifest(entries):
        for entry in entries:
            if entry.name == MANIFEST_NAME:
                manifest.update(json.loads(entry.contents))
            yield entry

    try:
        with open(args.output, "wb") as f:
            names = write_zip(capture_manifest(packager.export_project(args.project_id)), f)
    except LabelingError as e:
        Path(args.output).unlink(missing_ok=True)
        print(f"✗ Export failed: {e}")
        sys.exit(1)
    finally:
        conn.close()

    print(f"\nExport Report:")
    print(f"  Project: {manifest['project']['name']}")
    print(f"  Images written: {len(names) - 1}")
    print(f"  Labeled: {sum(1 for img in manifest['images'] if img['labeled'])}")

    if manifest["omitted"]:
        print(f"\nOmitted images:")
        for item in manifest["omitted"]:
            print(f"  ⚠ {item['id']} ({item['originalName']}): {item['reason']}")

    print(f"\n✓ Export complete: {args.output}")


if __name__ == "__main__":
    main()
