"""Build LaTeX documents in bounded passes and keep the project directory tidy."""

__version__ = "0.1.0"
