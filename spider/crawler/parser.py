"""
Page parser for extracting titles, visible text and outbound links.
"""

import re
import logging
from typing import List, Optional
from urllib.parse import urljoin, urlparse, urlunparse
from dataclasses import dataclass, field
from bs4 import BeautifulSoup, Comment

from .frontier import CrawlTask


TITLE_PATTERN = re.compile(r'<title[^>]*>(.*?)</title>', re.IGNORECASE | re.DOTALL)


@dataclass
class ParsedPage:
    """Container for the parts of a page the indexer needs."""
    url: str
    title: Optional[str] = None
    text: str = ""
    links: List[CrawlTask] = field(default_factory=list)


def extract_title(content: str) -> Optional[str]:
    """Return the text of the first <title> element, or None if there is none."""
    if not content:
        return None
    match = TITLE_PATTERN.search(content)
    if not match:
        return None
    title = ' '.join(match.group(1).split())
    return title or None


def resolve_link(base_url: str, href: str) -> str:
    """
    Resolve an anchor reference against the page it was found on.

    A reference starting with a single '/' is rebuilt from the current
    scheme and host; absolute addresses come back unchanged.
    """
    if href.startswith('/') and not href.startswith('//'):
        base = urlparse(base_url)
        return urlunparse((base.scheme, base.netloc, '', '', '', '')) + href
    return urljoin(base_url, href)


class ContentParser:
    """
    Parses HTML content into visible text and child crawl tasks.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.whitespace_pattern = re.compile(r'\s+')

    def parse(self, content: str, task: CrawlTask) -> ParsedPage:
        """
        Parse a fetched page.

        Args:
            content: Raw HTML content
            task: The task the content was fetched for

        Returns:
            ParsedPage; on unrecoverable markup the text and links are empty
        """
        page = ParsedPage(url=task.url, title=extract_title(content))
        soup = self._make_soup(content, task.url)
        if soup is None:
            return page

        page.links = self._extract_links(soup, task)
        page.text = self._extract_text(soup)

        self.logger.debug(f"Parsed {task.url}: {len(page.text)} chars, {len(page.links)} links")
        return page

    def extract_links(self, content: str, task: CrawlTask) -> List[CrawlTask]:
        """Return one child task per crawlable anchor on the page."""
        soup = self._make_soup(content, task.url)
        if soup is None:
            return []
        return self._extract_links(soup, task)

    def extract_text(self, content: str) -> str:
        soup = self._make_soup(content, None)
        if soup is None:
            return ""
        return self._extract_text(soup)

    def _make_soup(self, content: str, url: Optional[str]) -> Optional[BeautifulSoup]:
        if not content:
            return None
        try:
            return BeautifulSoup(content, 'lxml')
        except Exception as e:
            self.logger.warning(f"Could not parse markup from {url}: {e}")
            return None

    def _extract_links(self, soup: BeautifulSoup, task: CrawlTask) -> List[CrawlTask]:
        """Extract and resolve anchor targets, keeping document order."""
        links = []

        try:
            anchors = soup.find_all('a', href=True)
        except Exception as e:
            self.logger.warning(f"Error extracting links from {task.url}: {e}")
            return links

        for anchor in anchors:
            href = anchor['href'].strip()
            if not href or href.startswith('#'):
                continue

            try:
                absolute_url = resolve_link(task.url, href)
            except ValueError as e:
                self.logger.debug(f"Dropping unresolvable link {href!r} on {task.url}: {e}")
                continue

            if self._is_valid_url(absolute_url):
                links.append(task.child(absolute_url))

        return links

    def _extract_text(self, soup: BeautifulSoup) -> str:
        """Extract visible text content."""
        try:
            for script in soup(["script", "style", "noscript"]):
                script.decompose()

            for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
                comment.extract()

            text_content = soup.get_text(separator=' ', strip=True)
        except Exception as e:
            self.logger.warning(f"Error extracting text: {e}")
            return ""

        return self.whitespace_pattern.sub(' ', text_content).strip()

    def _is_valid_url(self, url: str) -> bool:
        """Only http(s) addresses with a host are crawlable."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return parsed.scheme in ('http', 'https') and bool(parsed.netloc)
