"""Write a static repository.json from config.json and an apps directory."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from altrepo.exceptions import AppsDirectoryError
from altrepo.filesystem.config_loader import load_repository_config
from altrepo.filesystem.discovery import discover_ipas
from altrepo.services.repository_service import generate_repository, render_repository_json


def build_repository(
    config_path: Path,
    apps_dir: Path,
    base_url: str,
    download_secret: str | None = None,
) -> str:
    """Scan ``apps_dir`` and return the rendered repository.json."""
    config = load_repository_config(config_path)
    index = discover_ipas(apps_dir)
    repo = generate_repository(config, index, base_url, secret=download_secret)
    return render_repository_json(repo)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="altrepo-build",
        description="Generate an AltStore repository.json without running the server",
    )
    parser.add_argument("--config", "-c", default="config.json", help="Path to config.json")
    parser.add_argument("--apps-dir", "-a", default="apps", help="Directory of app folders")
    parser.add_argument("--base-url", "-b", required=True, help="External base URL for downloads")
    parser.add_argument("--download-secret", help="Secret for obfuscated download URLs")
    parser.add_argument("--output", "-o", help="Output file (default: stdout)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log scan progress")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        content = build_repository(
            Path(args.config),
            Path(args.apps_dir),
            args.base_url,
            download_secret=args.download_secret or None,
        )
    except (FileNotFoundError, ValueError, AppsDirectoryError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.output:
        Path(args.output).write_text(content + "\n", encoding="utf-8")
        print(f"Wrote {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(content + "\n")


if __name__ == "__main__":
    main()
