"""``python -m cryptorecovery`` entry point."""

from cryptorecovery.hub.cli import main

raise SystemExit(main())
