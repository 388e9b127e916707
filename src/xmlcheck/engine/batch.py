"""Validate many files with a bounded worker pool."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Dict, List, Sequence

from ..diagnostics import ValidationResult, Verdict
from .validate import ValidationOptions, validate_path


logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """Results of a batch run, in input order."""

    results: List[ValidationResult] = field(default_factory=list)

    @property
    def by_path(self) -> Dict[str, ValidationResult]:
        return {result.source: result for result in self.results}

    @property
    def valid_count(self) -> int:
        return sum(1 for result in self.results if result.verdict is Verdict.VALID)

    @property
    def invalid_count(self) -> int:
        return sum(1 for result in self.results if result.verdict is Verdict.INVALID)

    @property
    def parse_error_count(self) -> int:
        return sum(1 for result in self.results if result.verdict is Verdict.PARSE_ERROR)

    @property
    def has_failures(self) -> bool:
        return any(not result.ok for result in self.results)

    def as_dict(self) -> dict:
        return {
            "results": [result.as_dict() for result in self.results],
            "summary": {
                "files": len(self.results),
                "valid": self.valid_count,
                "invalid": self.invalid_count,
                "parse_errors": self.parse_error_count,
            },
        }


def run_batch(
    files: Sequence[Path],
    *,
    root: Path = Path("."),
    options: ValidationOptions = ValidationOptions(),
    workers: int = 4,
) -> BatchReport:
    """Validate *files* (relative to *root*) concurrently.

    Each file is validated independently; a failure in one never affects the
    others. Results keep the order of *files*.
    """

    if not files:
        return BatchReport()

    root = Path(root)
    pool_size = max(1, min(workers, len(files)))
    logger.info("validating %d file(s) with %d worker(s)", len(files), pool_size)

    task = partial(_validate_one, root=root, options=options)
    with ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="xmlcheck") as executor:
        results = list(executor.map(task, files))

    report = BatchReport(results=results)
    logger.info(
        "finished: %d valid, %d invalid, %d parse error(s)",
        report.valid_count,
        report.invalid_count,
        report.parse_error_count,
    )
    return report


def _validate_one(path: Path, *, root: Path, options: ValidationOptions) -> ValidationResult:
    path = Path(path)
    result = validate_path(root / path, identifier=path.as_posix(), options=options)
    logger.debug("%s: %s", result.source, result.verdict.value)
    return result
