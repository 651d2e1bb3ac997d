from __future__ import annotations

from sequencer_probe.cli import main

if __name__ == "__main__":
    main()
