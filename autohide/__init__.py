"""
autohide - hide files and directories matching a selector.

Runs as a one-shot sweep over configured roots, as a long-lived watch session
reacting to filesystem change notifications, or a sweep followed by a watch.
Hiding uses the attribute bit on Windows and the leading-dot naming
convention everywhere else.
"""

__version__ = "0.3.0"
