#!/usr/bin/env python3
"""
Approve a configuration set by writing its checksum to APPROVED_FINGERPRINT.

Usage:
    python scripts/approve_config.py [config_set_directory]

If no directory is given, defaults to journal_config/sets/default/

The script:
  1. Loads engine.yaml and patterns.yaml from the directory
  2. Validates the loaded config
  3. Writes the config checksum to APPROVED_FINGERPRINT

The APPROVED_FINGERPRINT file is a separate git artifact from the YAML
files. Changing either file without re-running approval makes
get_active_config() raise ConfigIntegrityError.
"""

import sys
from pathlib import Path

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from journal_config.integrity import PINFILE_NAME
from journal_config.loader import load_config_set
from journal_config.validator import validate_configuration


def approve(config_dir: Path) -> str:
    """Load, validate, and write the pin file.

    Returns the checksum that was written.
    """
    print(f"Loading configuration from: {config_dir}")
    config = load_config_set(config_dir)
    print(f"  config_id: {config.config_id}")
    print(f"  version:   {config.version}")
    print(f"  patterns:  {len(config.patterns)}")

    print("Validating...")
    result = validate_configuration(config)
    if not result.is_valid:
        print("VALIDATION FAILED:")
        for err in result.errors:
            print(f"  ERROR: {err}")
        sys.exit(1)
    for w in result.warnings:
        print(f"  WARNING: {w}")

    print(f"  checksum:  {config.checksum}")
    pin_path = config_dir / PINFILE_NAME
    pin_path.write_text(config.checksum + "\n")
    print(f"Wrote {pin_path}")
    return config.checksum


def main():
    if len(sys.argv) > 1:
        target = Path(sys.argv[1])
    else:
        target = ROOT / "journal_config" / "sets" / "default"

    if not target.is_dir():
        print(f"Error: directory not found: {target}", file=sys.stderr)
        sys.exit(1)

    approve(target)
    print("Done. Config is now pinned.")


if __name__ == "__main__":
    main()
