"""Compile gettext .po catalogues under ``dealdesk/locale`` into .mo files."""
from __future__ import annotations

from pathlib import Path

import polib


def compile_all(locales_dir: Path) -> list[Path]:
    """Compile every ``.po`` file under ``locales_dir`` and return written paths."""
    written: list[Path] = []
    for po_file in sorted(locales_dir.rglob("*.po")):
        mo_file = po_file.with_suffix(".mo")
        polib.pofile(str(po_file)).save_as_mofile(str(mo_file))
        written.append(mo_file)
    return written


def main() -> None:
    root = Path(__file__).resolve().parent
    for path in compile_all(root / "dealdesk" / "locale"):
        print(path)


if __name__ == "__main__":
    main()
