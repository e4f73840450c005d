"""Allow ``python -m nerd_backup``."""

from nerd_backup.cli import main

main()
