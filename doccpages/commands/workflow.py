"""
Workflow command for doccpages.

Generates the GitHub Actions workflow that runs the pipeline on push.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import yaml

from ..config import load_config

DEFAULT_WORKFLOW_PATH = Path('.github') / 'workflows' / 'docc.yml'


def build_workflow(config: Dict[str, Any], runner: str = 'macos-14',
                   python_version: str = '3.12') -> Dict[str, Any]:
    """
    The workflow as a dict.

    One job, triggered by pushes to the trigger branches. The
    concurrency group keeps at most one run publishing; a new push
    cancels the run in progress.
    """
    branches: List[str] = list(config['trigger'].get('branches') or ['main'])
    concurrency = config['concurrency']
    hosting = config['pages'].get('target', 'branch')

    run_cmd = 'doccpages run'
    xcode_version = config['toolchain'].get('xcode_version')
    if xcode_version:
        run_cmd += f' --xcode-version {xcode_version}'

    return {
        'name': 'DocC Runner',
        'on': {'push': {'branches': branches}},
        'permissions': {
            # Pushing the pages branch needs write access to contents
            'contents': 'write' if hosting == 'branch' else 'read',
            'pages': 'write',
            'id-token': 'write',
        },
        'concurrency': {
            'group': concurrency.get('group', 'pages'),
            'cancel-in-progress': bool(concurrency.get('cancel_in_progress', True)),
        },
        'jobs': {
            'deploy': {
                'environment': {
                    'name': 'github-pages',
                    'url': '${{ steps.deployment.outputs.page_url }}',
                },
                'runs-on': runner,
                'steps': [
                    {'name': 'Checkout Code', 'uses': 'actions/checkout@v4'},
                    {
                        'name': 'Set up Python',
                        'uses': 'actions/setup-python@v5',
                        'with': {'python-version': python_version},
                    },
                    {'name': 'Install doccpages', 'run': 'pip install doccpages'},
                    {
                        'id': 'deployment',
                        'name': 'Build and Deploy Documentation',
                        'run': run_cmd,
                        'env': {'GITHUB_TOKEN': '${{ secrets.GITHUB_TOKEN }}'},
                    },
                ],
            },
        },
    }


def render_workflow(workflow: Dict[str, Any]) -> str:
    return yaml.safe_dump(workflow, sort_keys=False, default_flow_style=False, width=1000)


@click.command('workflow')
@click.argument('root', default='.', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help=f'Write to this file (use "-" for stdout; default: {DEFAULT_WORKFLOW_PATH})')
@click.option('--runner', default='macos-14', show_default=True, help='GitHub Actions runner label')
@click.option('--python-version', default='3.12', show_default=True)
@click.option('--force', is_flag=True, help='Overwrite an existing workflow file')
def workflow_handler(root: Path, output: Optional[Path], runner: str, python_version: str, force: bool):
    """
    Generate a GitHub Actions workflow that runs doccpages on push.

    Examples:

        doccpages workflow

        doccpages workflow -o -
    """
    config = load_config(root)
    text = render_workflow(build_workflow(config, runner=runner, python_version=python_version))

    if output is not None and str(output) == '-':
        click.echo(text, nl=False)
        return

    path = output or (root / DEFAULT_WORKFLOW_PATH)
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists (use --force to overwrite)")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    click.echo(f"Workflow written to {path}", err=True)
