"""Run the webhook sandbox with ``python -m webhooksandbox``."""

from webhooksandbox.runtime import main

main()
