from .main import cli, create_parser, main

__all__ = ["cli", "create_parser", "main"]
