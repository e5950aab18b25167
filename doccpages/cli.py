#!/usr/bin/env python3

import click

from doccpages.commands.detect import detect_handler
from doccpages.commands.build import build_handler
from doccpages.commands.package import package_handler
from doccpages.commands.publish import publish_handler
from doccpages.commands.run import run_handler
from doccpages.commands.workflow import workflow_handler
from doccpages.commands.config import config_cmd


@click.group()
@click.version_option(package_name='doccpages')
def cli():
    """doccpages - Build DocC documentation and publish it as a static site.

    Detects a Swift Package or Xcode project, builds its documentation
    with docc, packages it for static hosting and deploys it to GitHub
    Pages.
    """
    pass


# Pipeline stages
cli.add_command(detect_handler, name='detect')
cli.add_command(build_handler, name='build')
cli.add_command(package_handler, name='package')
cli.add_command(publish_handler, name='publish')

# Whole pipeline
cli.add_command(run_handler, name='run')

# Setup
cli.add_command(workflow_handler, name='workflow')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
