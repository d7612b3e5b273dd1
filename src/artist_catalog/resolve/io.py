"""Read and write resolution reports as YAML."""

import logging
from pathlib import Path

import yaml

from artist_catalog.resolve.models import ResolutionReport

logger = logging.getLogger(__name__)


def write_report(report: ResolutionReport, path: Path) -> None:
    """Write a resolution report to YAML."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"summary": report.summary(), **report.model_dump(mode="json")}
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    logger.info(f"Wrote resolution report ({report.created_count} created, {report.modified_count} modified, {report.rejected_count} rejected) to {path}")


def read_report(path: Path) -> ResolutionReport:
    """Read a resolution report from YAML."""
    if not path.exists():
        return ResolutionReport()
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return ResolutionReport()
    data.pop("summary", None)
    return ResolutionReport.model_validate(data)
