"""
Run command for doccpages.

Runs the whole pipeline: detect -> build -> package -> publish.
"""

import json
import os
import sys
from pathlib import Path
from typing import Optional

import click

from ..domain import PipelineReport, PipelineStage
from ..exit_codes import INTERRUPTED, get_exit_code_for_exception
from ..render import render_pipeline_report
from ..services.pipeline import Pipeline
from .common import add_common_options, apply_cli_overrides, load_command_config, progress


def _deployment_url(report: PipelineReport) -> Optional[str]:
    result = report.result_for(PipelineStage.PUBLISHING)
    if result is None:
        return None
    return result.metadata.get('deployment', {}).get('url')


def _write_github_output(report: PipelineReport) -> None:
    """Expose page_url to later workflow steps when running under GitHub Actions."""
    output_file = os.environ.get('GITHUB_OUTPUT')
    url = _deployment_url(report)
    if output_file and url:
        with open(output_file, 'a') as f:
            f.write(f"page_url={url}\n")


def _print_report(report: PipelineReport, pretty: bool) -> None:
    if pretty:
        render_pipeline_report(report)
    else:
        for result in report.results:
            print(json.dumps(result.to_dict()), flush=True)
        print(json.dumps(report.to_dict()), flush=True)


@click.command('run')
@click.argument('root', default='.', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option('--no-publish', is_flag=True, help='Build and package only')
@click.option('--dry-run', is_flag=True, help='Detect, then show what each stage would run')
@click.option('--force', is_flag=True, help='Run even when not on a trigger branch')
@click.option('--scheme', help='Scheme or target to document (default: first one listed)')
@click.option('--xcode-version', help='Xcode version to build with, e.g. 15.1.0')
@click.option('--allow-missing-docc', is_flag=True, help='Only warn when docc cannot be found')
@click.option('--hosting', type=click.Choice(['branch', 'directory']),
              help='Deployment target (default: pages.target)')
@click.option('--pages-directory', help='Destination for the directory target')
@add_common_options
def run_handler(
    root: Path,
    no_publish: bool,
    dry_run: bool,
    force: bool,
    scheme: Optional[str],
    xcode_version: Optional[str],
    allow_missing_docc: bool,
    hosting: Optional[str],
    pages_directory: Optional[str],
    pretty: bool,
    debug: bool,
    config_path,
):
    """
    Build, package and publish documentation for ROOT.

    Stops at the first failing stage and exits non-zero. Runs only on a
    push to one of the trigger branches (default: main) unless --force
    is given.

    Examples:

        doccpages run

        doccpages run --no-publish --force

        doccpages run --dry-run --pretty
    """
    config = load_command_config(root, config_path, debug, pretty)
    apply_cli_overrides(
        config,
        scheme=scheme,
        xcode_version=xcode_version,
        allow_missing_docc=allow_missing_docc,
        hosting=hosting,
        pages_directory=pages_directory,
    )

    pipeline = Pipeline(root, config, force=force)
    exit_code = 0
    try:
        for message in pipeline.run(publish=not no_publish, dry_run=dry_run):
            progress(message)
    except KeyboardInterrupt:
        exit_code = INTERRUPTED
    except Exception as e:
        exit_code = get_exit_code_for_exception(e)

    report = pipeline.last_report
    _print_report(report, pretty)
    if exit_code:
        sys.exit(exit_code)
    _write_github_output(report)
