"""
Programming language detection for saved code.

Heuristic only: the tag annotates persisted code and never gates execution.
"""

from __future__ import annotations

DEFAULT_LANGUAGE = "javascript"

HTML_MARKERS = ("<!doctype", "<html", "<head", "<body", "<div")


def _is_python(code: str) -> bool:
    return "def " in code and ":" in code and "import " in code


def _is_java(code: str) -> bool:
    return "public class" in code or "system.out.print" in code


def _is_cpp(code: str) -> bool:
    return "#include" in code or "printf(" in code or "cout" in code


def _is_html(code: str) -> bool:
    return any(marker in code for marker in HTML_MARKERS)


def _is_css(code: str) -> bool:
    return "{" in code and "}" in code and ":" in code


# Checked in order; first match wins.
LANGUAGE_RULES = (
    ("python", _is_python),
    ("java", _is_java),
    ("cpp", _is_cpp),
    ("html", _is_html),
    ("css", _is_css),
)


def detect_language(code: str) -> str:
    """
    Guess the language of a source snippet.

    Args:
        code: Source text from the editor buffer

    Returns:
        One of python, java, cpp, html, css, javascript
    """
    normalized = (code or "").strip().lower()
    for language, matches in LANGUAGE_RULES:
        if matches(normalized):
            return language
    return DEFAULT_LANGUAGE
