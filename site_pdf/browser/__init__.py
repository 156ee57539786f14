"""site_pdf.browser: automation interface and its Playwright implementation."""
from .base import BLANK_URL, Connection, Context, Request, Response, Tab  # noqa: F401
from .chromium import PlaywrightConnection, PlaywrightContext, PlaywrightTab, launch_browser  # noqa: F401
