"""pipeshell - an interactive shell with pipelines and redirection."""

__version__ = "0.1.0"
