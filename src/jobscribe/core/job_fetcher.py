from __future__ import annotations

import logging

import requests
from bs4 import BeautifulSoup

from jobscribe.core.scraper import extract_job_description, visible_text

logger = logging.getLogger(__name__)


USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def fetch_job_html(url: str, timeout_sec: int = 30) -> str:
    try:
        response = requests.get(url, timeout=timeout_sec, headers={"User-Agent": USER_AGENT})
        response.raise_for_status()
    except Exception as exc:
        logger.warning("Failed to fetch job URL %s: %s", url, exc)
        return ""
    return response.text


def fetch_job_text(url: str, timeout_sec: int = 30) -> str:
    """Scrape a job page once, falling back to all of its visible text."""
    html = fetch_job_html(url, timeout_sec=timeout_sec)
    if not html:
        return ""

    description = extract_job_description(html)
    if description is not None:
        return description

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.extract()
    return visible_text(soup)
