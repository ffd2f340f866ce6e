# === FILE: site_auditor/cli.py ===
#!/usr/bin/env python3
"""
Command line entry point of SiteAuditor.

Commands:
  crawl     Crawl a site from the configured seed and print or save reports
  config    Show the effective configuration

Group options:
  --config PATH       YAML/JSON config file (default: configs/default.yaml)
  --limit INT         Crawl budget (overrides max_pages)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only when omitted)
  --log-format FORMAT Logging format string
  --version, -v       Show the SiteAuditor version

crawl options:
  --json PATH         Save the JSON report
  --html PATH         Save the HTML report
  --template DIR      Directory with a custom report.html.j2
  --pretty            Indent JSON printed to stdout
  --scan-timeout SEC  Wall-clock cap for the whole crawl (seconds)
  --no-render         Skip the headless browser, fetch over plain HTTP

Example:
  site-auditor --config configs/default.yaml --limit 100 crawl --json report.json
"""
import asyncio
import sys
from pathlib import Path

import click

from site_auditor import __version__
from site_auditor.aggregator import aggregate_results
from site_auditor.config import load_config
from site_auditor.crawler.errors import CrawlError
from site_auditor.engine import start_crawl
from site_auditor.logger import DEFAULT_FORMAT, init_logging
from site_auditor.report.html_report import render_html
from site_auditor.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteAuditor, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to the YAML or JSON configuration file.'
)
@click.option(
    '--limit', '-l', 'limit',
    type=click.IntRange(min=1),
    default=None,
    help='Crawl budget: maximum number of pages (overrides max_pages)'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stderr only when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, limit, log_level, log_file, log_format):
    """SiteAuditor command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Failed to load configuration: {e}')
    if limit is not None:
        cfg = cfg.model_copy(update={'max_pages': limit})
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the JSON report to a file'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the HTML report to a file'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with a custom report.html.j2'
)
@click.option(
    '--pretty', is_flag=True,
    help='Indent JSON printed to stdout (2 spaces)'
)
@click.option(
    '--scan-timeout', 'scan_timeout',
    type=float,
    default=None,
    help='Wall-clock cap for the whole crawl (seconds)'
)
@click.option(
    '--no-render', 'no_render', is_flag=True,
    help='Fetch over plain HTTP without the headless browser'
)
@click.pass_context
def crawl(ctx, json_output, html_output, template_dir, pretty, scan_timeout, no_render):
    """Crawl the configured site and produce reports."""
    cfg = ctx.obj['config']
    if no_render:
        cfg = cfg.model_copy(update={'render': False})
    click.echo(f'Starting crawl of {cfg.base_url} (max {cfg.max_pages} pages)', err=True)
    try:
        if scan_timeout:
            result = asyncio.run(
                asyncio.wait_for(start_crawl(cfg), timeout=scan_timeout)
            )
        else:
            result = asyncio.run(start_crawl(cfg))
    except asyncio.TimeoutError:
        print_error(f'Crawl did not finish within {scan_timeout} seconds')
    except CrawlError as e:
        print_error(f'Crawl failed: {e}')

    report = aggregate_results(result)

    # stdout when no file is requested
    if not json_output and not html_output:
        click.echo(report.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output)
            click.echo(f'JSON report: {saved_json}', err=True)
        except OSError as e:
            print_error(f'Failed to save JSON report: {e}')

    if html_output:
        try:
            saved_html = render_html(report, html_output, template_dir)
            click.echo(f'HTML report: {saved_html}', err=True)
        except OSError as e:
            print_error(f'Failed to save HTML report: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the effective configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
