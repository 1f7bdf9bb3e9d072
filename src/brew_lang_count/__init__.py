"""Count Homebrew core formulae depending on a language, build system or library."""

__version__ = "0.1.0"
