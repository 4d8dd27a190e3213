"""Command-line entry point for building the gem index.

The build runs in three steps:

# Step 1: Crawl
Starting from the seed gems, query the registry for every gem reachable
through dependencies until no new names show up.

# Step 2: Aggregate
Deduplicate the crawled releases, coerce versions and requirements to
semver, and order everything deterministically.

# Step 3: Write
Serialize the index as JSON, optionally pretty-printed and date-stamped.

Every option can also be set through the environment variable named in
its help text.
"""

import os
import sys
from pathlib import Path
from typing import Optional

import click
import sentry_sdk

from .. import __version__
from .._crawl import SubprocessHostVersions, crawl
from .._registry import COMPACT_INDEX, REGISTRY_APIS, create_client
from ..aggregation import aggregate, index_stats
from ..config import (
    LOG_LEVELS,
    Config,
    load_config_file,
    merge_deny_versions,
    parse_deny_versions,
    parse_name_list,
)
from ..console import (
    print_banner,
    print_final_failure,
    print_final_success,
    print_index_summary,
    print_step_end,
    print_step_header,
)
from ..exceptions import ConfigurationError, GemIndexError
from ..http_client import DEFAULT_TIMEOUT
from ..logging_config import logger, setup_logging
from ..serialization import IndexSerializer

GEMINDEX_VERSION = __version__


def evaluate_boolean(value: str) -> bool:
    """
    Evaluate string values as boolean.

    Args:
        value: String value to evaluate

    Returns:
        Boolean result
    """
    return value.lower() in ["true", "yes", "yeah", "1"]


def _sentry_before_send(event, hint):
    """
    Filter events before sending to Sentry.
    Configuration errors are user errors and are not reported.
    """
    if "exc_info" in hint:
        exc_type, exc_value, tb = hint["exc_info"]
        if isinstance(exc_value, ConfigurationError):
            return None
    return event


def initialize_sentry() -> None:
    """Initialize Sentry for error tracking when a DSN is configured."""
    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn or not evaluate_boolean(os.getenv("TELEMETRY", "true")):
        logger.debug("Sentry disabled")
        return

    sentry_sdk.init(
        dsn=sentry_dsn,
        send_default_pii=False,
        traces_sample_rate=1.0,
        release=f"gemindex@{GEMINDEX_VERSION}",
        before_send=_sentry_before_send,
    )


def build_config(
    seeds: tuple[str, ...] = (),
    denylist: tuple[str, ...] = (),
    deny_versions: tuple[str, ...] = (),
    config_file: Optional[str] = None,
    output_file: Optional[str] = None,
    pretty: bool = True,
    date_stamp: bool = False,
    registry_api: str = COMPACT_INDEX,
    registry_url: Optional[str] = None,
    batch_size: Optional[int] = None,
    workers: int = 1,
    timeout: int = DEFAULT_TIMEOUT,
    include_metadata_requirements: bool = False,
    ruby_version: Optional[str] = None,
    rubygems_version: Optional[str] = None,
    log_level: str = "INFO",
    structured_logs: bool = False,
) -> Config:
    """
    Build and validate the configuration from CLI values and the config file.

    Seeds from the command line replace the file's seeds; deny-lists from
    both sources are merged.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    file_config = load_config_file(config_file)

    cli_seeds = parse_name_list(seeds)
    config = Config(
        denylist=parse_name_list(list(file_config["denylist"]) + list(denylist)),
        deny_versions=merge_deny_versions(file_config["deny_versions"], parse_deny_versions(deny_versions)),
        pretty=pretty,
        date_stamp=date_stamp,
        registry_api=registry_api,
        registry_url=registry_url,
        batch_size=batch_size,
        workers=workers,
        timeout=timeout,
        include_metadata_requirements=include_metadata_requirements,
        ruby_version=ruby_version,
        rubygems_version=rubygems_version,
        log_level=log_level,
        structured_logs=structured_logs,
    )
    if cli_seeds:
        config.seeds = cli_seeds
    elif file_config["seeds"]:
        config.seeds = parse_name_list(file_config["seeds"])
    if output_file:
        config.output_file = output_file

    config.validate()
    return config


def run_pipeline(config: Config) -> Path:
    """
    Crawl, aggregate and write the index.

    Returns:
        Path of the written index file

    Raises:
        GemIndexError: If any step fails
    """
    print_step_header(1, "Crawl")
    logger.info(f"Seeds: {', '.join(config.seeds)}")
    if config.denylist:
        logger.info(f"Deny-list: {', '.join(config.denylist)}")
    client = create_client(
        config.registry_api,
        base_url=config.registry_url,
        timeout=config.timeout,
        include_metadata_requirements=config.include_metadata_requirements,
    )
    try:
        specs = crawl(
            config.seeds,
            config.denylist,
            config.deny_versions,
            client=client,
            host=SubprocessHostVersions(config.ruby_version, config.rubygems_version),
            workers=config.workers,
            batch_size=config.batch_size,
        )
    except GemIndexError:
        print_step_end(1, success=False)
        raise
    print_step_end(1)

    print_step_header(2, "Aggregate")
    index = aggregate(specs)
    print_step_end(2)

    print_step_header(3, "Write")
    serializer = IndexSerializer(config.output_file, pretty=config.pretty, date_stamp=config.date_stamp)
    try:
        destination = serializer.write(index)
    except GemIndexError:
        print_step_end(3, success=False)
        raise
    print_step_end(3)

    print_index_summary(index_stats(index), len(specs), str(destination))
    return destination


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(GEMINDEX_VERSION, "--version", message="gemindex %(version)s")
@click.option(
    "--seed",
    "-s",
    "seeds",
    multiple=True,
    envvar="SEEDS",
    help="Gem to start crawling from; repeatable or comma-separated. [env: SEEDS]",
)
@click.option(
    "--deny",
    "denylist",
    multiple=True,
    envvar="DENYLIST",
    help="Gem never queried nor followed; repeatable. [env: DENYLIST]",
)
@click.option(
    "--deny-version",
    "deny_versions",
    multiple=True,
    envvar="DENY_VERSIONS",
    metavar="NAME:VERSION",
    help="Release left out of the index; repeatable. [env: DENY_VERSIONS]",
)
@click.option(
    "--config",
    "config_file",
    envvar="GEMINDEX_CONFIG",
    type=click.Path(dir_okay=False),
    help="JSON config file with seeds and deny-lists (default: ./gemindex.json). [env: GEMINDEX_CONFIG]",
)
@click.option("--output", "-o", "output_file", envvar="OUTPUT_FILE", help="Index file to write. [env: OUTPUT_FILE]")
@click.option("--pretty/--compact", default=True, envvar="PRETTY", help="Indent the JSON output. [env: PRETTY]")
@click.option(
    "--date-stamp/--no-date-stamp",
    default=False,
    envvar="DATE_STAMP",
    help="Insert the UTC date into the output file name. [env: DATE_STAMP]",
)
@click.option(
    "--registry-api",
    type=click.Choice(REGISTRY_APIS),
    default=COMPACT_INDEX,
    envvar="REGISTRY_API",
    show_default=True,
    help="Registry API to query. [env: REGISTRY_API]",
)
@click.option("--registry-url", envvar="REGISTRY_URL", help="Registry base URL. [env: REGISTRY_URL]")
@click.option(
    "--batch-size",
    type=int,
    envvar="BATCH_SIZE",
    help="Query the registry in batches of this many gems. [env: BATCH_SIZE]",
)
@click.option(
    "--workers",
    type=int,
    default=1,
    envvar="WORKERS",
    show_default=True,
    help="Concurrent registry queries per pass. [env: WORKERS]",
)
@click.option(
    "--timeout",
    type=int,
    default=DEFAULT_TIMEOUT,
    envvar="REQUEST_TIMEOUT",
    show_default=True,
    help="Registry request timeout in seconds. [env: REQUEST_TIMEOUT]",
)
@click.option(
    "--with-metadata-requirements",
    "include_metadata_requirements",
    is_flag=True,
    envvar="INCLUDE_METADATA_REQUIREMENTS",
    help="Index ruby/rubygems requirements as dependencies. [env: INCLUDE_METADATA_REQUIREMENTS]",
)
@click.option(
    "--ruby-version",
    envvar="RUBY_VERSION_OVERRIDE",
    help="Version used for the ruby pseudo-gem instead of asking ruby. [env: RUBY_VERSION_OVERRIDE]",
)
@click.option(
    "--rubygems-version",
    envvar="RUBYGEMS_VERSION_OVERRIDE",
    help="Version used for the rubygems pseudo-gem instead of asking gem. [env: RUBYGEMS_VERSION_OVERRIDE]",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    envvar="LOG_LEVEL",
    show_default=True,
    help="Logging verbosity. [env: LOG_LEVEL]",
)
@click.option(
    "--structured-logs",
    is_flag=True,
    envvar="STRUCTURED_LOGS",
    help="Emit JSON log lines. [env: STRUCTURED_LOGS]",
)
def cli(**options) -> None:
    """Build a semver-normalized index of RubyGems and their dependencies."""
    setup_logging(options["log_level"], structured=options["structured_logs"])
    print_banner(GEMINDEX_VERSION)
    initialize_sentry()

    try:
        config = build_config(**options)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print_final_failure(str(e))
        sys.exit(1)

    try:
        run_pipeline(config)
    except GemIndexError as e:
        logger.error(f"Index build failed: {e}")
        print_final_failure(str(e))
        sys.exit(1)

    print_final_success()


def main() -> None:
    """Console script entry point."""
    cli()
