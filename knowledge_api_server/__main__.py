"""Allow running with python -m knowledge_api_server."""

from .cli import main

main()
