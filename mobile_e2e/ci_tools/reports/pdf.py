"""Render HTML reports to PDF with headless Chromium."""

import logging
from collections.abc import Sequence
from pathlib import Path

from playwright.async_api import async_playwright

logger = logging.getLogger(__name__)

# Flags needed to run Chromium inside unprivileged CI containers
CHROMIUM_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--disable-dev-shm-usage",
    "--disable-software-rasterizer",
    "--single-process",
    "--no-zygote",
    "--disable-extensions",
)


async def print_pdf(
    html_file: Path, pdf_file: Path, browser_args: Sequence[str] = CHROMIUM_ARGS
) -> Path:
    """Print an HTML file to PDF.

    Args:
        html_file: HTML report to render
        pdf_file: Destination PDF path
        browser_args: Chromium command line flags

    Returns:
        Path of the written PDF

    Raises:
        FileNotFoundError: If the HTML file does not exist

    """
    if not html_file.is_file():
        raise FileNotFoundError(f"HTML report not found: {html_file}")

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=list(browser_args))
        try:
            page = await browser.new_page()
            await page.goto(html_file.resolve().as_uri(), wait_until="networkidle")
            await page.pdf(path=str(pdf_file), format="A4", print_background=True)
        finally:
            await browser.close()

    logger.info(f"PDF generated successfully: {pdf_file}")
    return pdf_file
