# === FILE: site_auditor/config.py ===
"""
Loading and validation of the SiteAuditor crawl configuration.
The schema is described with Pydantic; files may be YAML or JSON.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, HttpUrl

__all__ = ("CrawlerConfig", "load_config")


class CrawlerConfig(BaseModel):
    """Configuration of one crawl run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: HttpUrl = Field(..., description="Seed URL of the crawl.")
    max_pages: int = Field(2000, ge=1, description="Crawl budget: hard cap on visited pages.")
    concurrency: int = Field(5, ge=1, le=64, description="Number of concurrent workers.")
    politeness_delay: float = Field(0.08, ge=0, description="Pause before each fetch, per worker (seconds).")

    render: bool = Field(True, description="Render pages in a headless browser before falling back to HTTP.")
    headless: bool = Field(True, description="Run the browser headless.")
    render_timeout: float = Field(50.0, gt=0, description="Navigation timeout of the renderer (seconds).")
    render_wait_until: Literal["commit", "domcontentloaded", "load", "networkidle"] = Field(
        "domcontentloaded", description="Settle condition the renderer waits for."
    )

    fetch_timeout: float = Field(20.0, gt=0, description="Timeout of the fallback HTTP GET (seconds).")
    retry_times: int = Field(0, ge=0, description="Fallback retries on 5xx/429.")
    user_agent: str = Field("SiteAuditorBot/1.0", min_length=1, description="User-Agent header.")

    check_resources: bool = Field(True, description="Check images, scripts and stylesheets for reachability.")
    resource_timeout: float = Field(5.0, gt=0, description="Timeout of one resource check (seconds).")
    resource_batch_size: int = Field(10, ge=1, description="Concurrent resource checks per page.")

    sitemap_timeout: float = Field(15.0, gt=0, description="Timeout for sitemap.xml and robots.txt (seconds).")


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
    """
    Read YAML or JSON and return a validated CrawlerConfig.
    Raises FileNotFoundError when the file does not exist.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return CrawlerConfig(**data)
