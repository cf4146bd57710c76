"""GudScript: lexer, parser and tooling for the GudScript language."""

__version__ = "0.1.0"
