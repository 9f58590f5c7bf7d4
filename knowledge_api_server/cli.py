"""Command line entry points."""

import dataclasses
import json
import logging
import sys

import click

from .config import ServerConfig
from .exceptions import CrawlError
from .kb.config import KnowledgeConfig
from .kb.service import KnowledgeService
from .server import KnowledgeServer, configure_logging


@click.group(invoke_without_command=True)
@click.option("--env-prefix", default="", help="Prefix for environment variables (e.g. EPTURA_).")
@click.pass_context
def main(ctx, env_prefix):
    """Eptura knowledge base API server."""
    config = ServerConfig.from_env(env_prefix)
    configure_logging(config)

    ctx.obj = {
        "config": config,
        "kb_config": KnowledgeConfig.from_env(env_prefix),
    }

    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@main.command()
@click.option("--host", default=None, help="Host to bind to (default: HOST or 127.0.0.1).")
@click.option("--port", default=None, type=int, help="Port to listen on (default: PORT or 3001).")
@click.option("--debug", is_flag=True, help="Enable Flask debug mode.")
@click.option("--no-refresh", is_flag=True, help="Skip the startup crawl and the refresh schedule.")
@click.pass_context
def serve(ctx, host, port, debug, no_refresh):
    """Run the HTTP API server."""
    service = KnowledgeService(ctx.obj["kb_config"])
    server = KnowledgeServer(ctx.obj["config"], service)
    server.run(port=port, host=host, debug=debug, refresh=not no_refresh)


@main.command()
@click.option("--seed", "seeds", multiple=True, help="Seed path to crawl (repeatable, default: configured seeds).")
@click.option("--query", default=None, help="Search the fresh knowledge base and print the results.")
@click.pass_context
def crawl(ctx, seeds, query):
    """Run one crawl and print a report."""
    service = KnowledgeService(dataclasses.replace(ctx.obj["kb_config"], show_progress=True))
    try:
        entries = service.refresh(list(seeds) or None)
    except CrawlError as e:
        logging.getLogger(__name__).error(f"Crawl failed: {e}")
        sys.exit(1)

    click.echo(f"Knowledge base entries: {entries}")
    click.echo(json.dumps(service.last_report.to_dict(), indent=2))

    if query:
        for result in service.search(query):
            click.echo(f"\n[{result.score}] {result.document.title} - {result.document.url}\n  {result.excerpt}")
