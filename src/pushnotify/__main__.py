"""Allow ``python -m pushnotify``."""

from pushnotify.cli.main import main

main()
