"""A small interactive command shell with pipes, redirections, here-documents and builtins."""

__version__ = "0.1.0"
__all__ = [
    "builtins",
    "cli",
    "environment",
    "executor",
    "heredoc",
    "lexer",
    "parser",
    "redirection",
    "syntax",
    "textutil",
]