"""Browser-backed concurrent scraping engine.

Turns candidate URLs into clean page text using one long-lived headless
Chromium process shared by all concurrent scrape calls.

Sub-modules:
- ``config``             — constants, launch configuration and tuning defaults
- ``url_classifier``     — URL-shape filter for non-HTML resources
- ``content_extractor``  — BeautifulSoup-based visible-text extraction
- ``challenge``          — anti-bot challenge detectors and the page loader
- ``browser_scraper``    — Playwright browser owner handing out one tab per call
"""
