import logging
import shlex
import shutil
import subprocess
from pathlib import Path

import click

from .errors import BuildError

logger = logging.getLogger(__name__)


def _run_step(label, command, project_dir):
    argv = shlex.split(command)
    if not argv:
        logger.debug("Skipping empty %s command", label.lower())
        return
    runner_path = shutil.which(argv[0])
    if runner_path is None:
        raise BuildError(f"{argv[0]} not found in PATH.")

    click.echo(f"{label}: {command}")
    logger.debug("Running %s in %s", argv, project_dir)
    result = subprocess.run([runner_path] + argv[1:], cwd=project_dir)
    if result.returncode != 0:
        raise BuildError(
            f"{label} failed with exit code {result.returncode}", returncode=result.returncode
        )


def build_project(settings, project_dir):
    project_dir = Path(project_dir)
    if not settings.build_command.strip():
        click.echo("No build step required.")
        return None

    if settings.install_command.strip():
        _run_step("Installing dependencies", settings.install_command, project_dir)
    _run_step("Building app", settings.build_command, project_dir)

    output_path = project_dir / settings.output_dir
    if not output_path.is_dir():
        raise BuildError(
            f"Build finished but output directory '{settings.output_dir}' was not created."
        )
    click.echo("Build complete.")
    return output_path
