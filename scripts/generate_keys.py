"""Generate the field encryption key for LifeCRM."""

from __future__ import annotations

import argparse
from pathlib import Path

from lifecrm_app.core.config import DEFAULT_ENCRYPTION_KEY_ENV
from lifecrm_app.core.crypto import CryptoService


def _render_line(name: str, value: str, export: bool) -> str:
    prefix = "export " if export else ""
    return f"{prefix}{name}='{value}'"


def main() -> None:
    """Generate a key and write it to an env file or stdout."""
    parser = argparse.ArgumentParser(description="Generate LifeCRM runtime keys.")
    parser.add_argument("--write-env", default=None, help="Env file to write, e.g. config/runtime.env.")
    parser.add_argument("--export", action="store_true", help="Prefix lines with 'export '.")
    parser.add_argument("--force", action="store_true", help="Overwrite an existing env file.")
    args = parser.parse_args()

    line = _render_line(DEFAULT_ENCRYPTION_KEY_ENV, CryptoService.generate_base64_key(), args.export)

    if not args.write_env:
        print(line)
        return

    target_path = Path(args.write_env)
    if target_path.exists() and not args.force:
        print(f"[INFO] key file already exists: {target_path}")
        return
    target_path.parent.mkdir(parents=True, exist_ok=True)
    target_path.write_text(line + "\n", encoding="utf-8")
    print(f"[INFO] key file written: {target_path}")


if __name__ == "__main__":
    main()
