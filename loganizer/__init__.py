"""Parallel analysis of heterogeneous log files."""

from .aggregator import Accumulator, reduce_results
from .analyzer import SourceAnalyzer, analyze_source
from .config import filter_sources, load_sources
from .dispatcher import run_workers
from .models import Dialect, ErrorStat, GlobalResult, LogRecord, SourceResult, SourceSpec
from .pipeline import analyze_sources

__version__ = "0.1.0"

__all__ = [
    "Accumulator",
    "Dialect",
    "ErrorStat",
    "GlobalResult",
    "LogRecord",
    "SourceAnalyzer",
    "SourceResult",
    "SourceSpec",
    "analyze_source",
    "analyze_sources",
    "filter_sources",
    "load_sources",
    "reduce_results",
    "run_workers",
]
