from __future__ import annotations

from filterstack.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
