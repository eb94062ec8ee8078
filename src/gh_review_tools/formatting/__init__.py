"""
Output Formatting

Console rendering of diagnostics and Markdown rendering of review threads.
"""

from .console import ConsoleFormatter
from .markdown import render_thread_report

__all__ = ['ConsoleFormatter', 'render_thread_report']
