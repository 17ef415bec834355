"""Allow ``python -m hdfsblob``."""

from hdfsblob.cli import main

raise SystemExit(main())
