"""Allow ``python -m sqldocs.cli`` execution."""

from sqldocs.cli.docs import main

main()
