"""Crawl engine: frontier, fetcher, extractor and scheduler."""
from site_capture.crawler.crawler import AsyncCrawler
from site_capture.crawler.models import CapturedRecord, FetchJob, LinkInfo

__all__ = ["AsyncCrawler", "CapturedRecord", "FetchJob", "LinkInfo"]
