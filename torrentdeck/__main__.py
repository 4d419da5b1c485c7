"""Allow ``python -m torrentdeck``."""

from __future__ import annotations

from torrentdeck.cli.main import main

if __name__ == "__main__":
    main()
