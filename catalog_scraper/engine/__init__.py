"""Engine components orchestrating search → match → detail → persist."""

from .aggregate import summarize
from .fetcher import FetchError, FetchErrorKind, Fetcher
from .models import Candidate, DetailRecord, MatchType, RunSummary, ScrapeResult
from .pacing import RequestPacer
from .parser import CatalogParser, HtmlCatalogParser
from .resolver import Resolver, resolve_detail_url, select_best_match
from .resume import load_resume_set
from .worker_pool import ProgressEvent, WorkerPool

__all__ = [
    "Candidate",
    "CatalogParser",
    "DetailRecord",
    "FetchError",
    "FetchErrorKind",
    "Fetcher",
    "HtmlCatalogParser",
    "MatchType",
    "ProgressEvent",
    "RequestPacer",
    "Resolver",
    "RunSummary",
    "ScrapeResult",
    "WorkerPool",
    "load_resume_set",
    "resolve_detail_url",
    "select_best_match",
    "summarize",
]
