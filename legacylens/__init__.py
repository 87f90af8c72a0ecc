"""legacylens - migration analysis for legacy JSP/Java web applications."""

__version__ = "0.1.0"
