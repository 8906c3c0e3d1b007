import logging
from pathlib import Path

import click

from . import __version__
from .build import build_project
from .config_generator import write_platform_config
from .errors import CLINotFoundError, ConfigExistsError, SitepushError
from .framework_detection import PRESETS, BuildSettings, detect_package_manager, infer_build_settings
from .git_utils import ensure_gitignore, get_repo_state
from .platforms import (
    PLATFORMS,
    DeployOptions,
    build_deploy_command,
    deploy,
    ensure_cli,
    get_platform,
    is_authenticated,
    login,
)
from .settings import SETTINGS_FILE, load_history, load_settings, record_deployment, save_settings
from .verify import verify_deployment

logger = logging.getLogger(__name__)

PLATFORM_CHOICE = click.Choice(sorted(PLATFORMS))
FRAMEWORK_CHOICE = click.Choice(sorted(PRESETS))
PROJECT_PATH = click.Path(exists=True, file_okay=False, path_type=Path)


def _ask(text, default, assume_yes, required=False):
    if assume_yes:
        if required and not default:
            raise SitepushError(f"{text} is required; pass it as an option when using --yes")
        return default
    value = click.prompt(text, default=default or "", show_default=bool(default))
    if required and not value:
        raise SitepushError(f"{text} is required")
    return value.strip()


def _resolve_platform(platform, saved, assume_yes):
    if platform:
        return platform
    default = saved.get("platform")
    if assume_yes:
        if not default:
            raise SitepushError("No platform configured; pass --platform when using --yes")
        return default
    return click.prompt("Deploy to which platform", type=PLATFORM_CHOICE, default=default)


def _resolve_build_settings(project_dir, saved, framework, build_command, install_command,
                            output_dir, assume_yes):
    saved_build = saved.get("build") or {}
    inferred = infer_build_settings(project_dir, framework)
    click.echo(f"Detected framework: {inferred.preset.display_name}")

    defaults = inferred.to_dict()
    # saved commands only apply to the framework they were saved for
    if saved_build.get("framework") == inferred.framework:
        defaults.update({k: v for k, v in saved_build.items() if v is not None})

    settings = BuildSettings(
        framework=inferred.framework,
        package_manager=defaults.get("package_manager") or detect_package_manager(project_dir),
    )
    if build_command is None:
        build_command = _ask("Build command", defaults.get("build_command"), assume_yes)
    settings.build_command = build_command
    if install_command is None:
        install_command = defaults.get("install_command", "") if settings.build_command else ""
    settings.install_command = install_command
    if output_dir is None:
        output_dir = _ask("Output directory", defaults.get("output_dir") or ".", assume_yes)
    settings.output_dir = output_dir
    return settings


def _resolve_options(platform, saved, site, project, scope, channel, assume_yes, project_dir):
    saved_options = saved.get("options") or {}
    options = {
        "site": site or saved_options.get("site"),
        "project": project or saved_options.get("project"),
        "scope": scope or saved_options.get("scope"),
        "channel": channel or saved_options.get("channel") or "preview",
    }
    if platform.name == "firebase" and not options["project"]:
        has_rc = (project_dir / ".firebaserc").exists()
        options["project"] = _ask("Firebase project ID", None, assume_yes, required=not has_rc) or None
    return options


def _write_config(project_dir, platform, settings, options, assume_yes):
    try:
        written = write_platform_config(project_dir, platform.name, settings, options)
    except ConfigExistsError as e:
        if assume_yes or not click.confirm(f"{e.path.name} already exists. Overwrite?", default=False):
            click.echo(f"Keeping existing {e.path.name}")
            return []
        written = write_platform_config(project_dir, platform.name, settings, options, overwrite=True)
    for path in written:
        click.echo(f"Wrote {path.name}")
    return written


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging, including external commands.")
@click.version_option(version=__version__, prog_name="sitepush")
def cli(verbose):
    """Detect, configure and deploy web projects to Vercel, Netlify or Firebase Hosting."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command("detect")
@click.argument("path", default=".", type=PROJECT_PATH)
def detect_command(path):
    """Show the detected framework and inferred build settings."""
    settings = infer_build_settings(path)
    click.echo(f"Framework:       {settings.preset.display_name} ({settings.framework})")
    click.echo(f"Package manager: {settings.package_manager}")
    click.echo(f"Install command: {settings.install_command or '-'}")
    click.echo(f"Build command:   {settings.build_command or '-'}")
    click.echo(f"Output dir:      {settings.output_dir}")
    click.echo(f"Single-page app: {'yes' if settings.spa else 'no'}")


@cli.command("init")
@click.argument("path", default=".", type=PROJECT_PATH)
@click.option("--platform", type=PLATFORM_CHOICE)
@click.option("--framework", type=FRAMEWORK_CHOICE, help="Override framework detection.")
@click.option("--build-command")
@click.option("--output-dir")
@click.option("--project", help="Firebase project ID.")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Accept defaults without prompting.")
def init_command(path, platform, framework, build_command, output_dir, project, assume_yes):
    """Write the platform config file and remember the settings."""
    project_dir = path.resolve()
    saved = load_settings(project_dir)
    platform = get_platform(_resolve_platform(platform, saved, assume_yes))
    settings = _resolve_build_settings(
        project_dir, saved, framework, build_command, None, output_dir, assume_yes
    )
    options = _resolve_options(platform, saved, None, project, None, None, assume_yes, project_dir)

    _write_config(project_dir, platform, settings, options, assume_yes)
    save_settings(project_dir, platform.name, settings, options)
    click.echo(f"Settings saved to {SETTINGS_FILE}")


@cli.command("deploy")
@click.argument("path", default=".", type=PROJECT_PATH)
@click.option("--platform", type=PLATFORM_CHOICE)
@click.option("--framework", type=FRAMEWORK_CHOICE, help="Override framework detection.")
@click.option("--build-command")
@click.option("--install-command")
@click.option("--output-dir")
@click.option("--prod/--preview", "production", default=None, help="Production or preview deploy.")
@click.option("--site", help="Netlify site ID or name.")
@click.option("--project", help="Firebase project ID.")
@click.option("--scope", help="Vercel team scope.")
@click.option("--channel", help="Firebase preview channel.")
@click.option("--message", help="Deploy message (Netlify, Firebase).")
@click.option("--skip-build", is_flag=True, help="Deploy the existing output directory as is.")
@click.option("--verify/--no-verify", default=True, help="Check the deployed URL responds.")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Accept defaults without prompting.")
def deploy_command(path, platform, framework, build_command, install_command, output_dir,
                   production, site, project, scope, channel, message, skip_build, verify,
                   assume_yes):
    """Build the project and publish it with the platform's CLI."""
    project_dir = path.resolve()
    saved = load_settings(project_dir)
    platform = get_platform(_resolve_platform(platform, saved, assume_yes))
    ensure_cli(platform)

    settings = _resolve_build_settings(
        project_dir, saved, framework, build_command, install_command, output_dir, assume_yes
    )
    options = _resolve_options(platform, saved, site, project, scope, channel, assume_yes, project_dir)
    if production is None:
        production = True if assume_yes else click.confirm("Deploy to production?", default=True)

    repo_state = get_repo_state(project_dir)
    if repo_state is not None:
        if repo_state.dirty:
            click.secho("Warning: working tree has uncommitted changes.", fg="yellow")
            if not assume_yes and not click.confirm("Deploy anyway?", default=True):
                raise click.Abort()
        added = ensure_gitignore(project_dir, [platform.cache_dir, ".sitepush/"])
        if added:
            click.echo(f"Added {', '.join(added)} to .gitignore")
    if message is None and repo_state is not None:
        message = repo_state.label

    if not is_authenticated(platform, cwd=project_dir):
        if assume_yes:
            raise SitepushError(
                f"Not logged in to {platform.display_name}. Run `sitepush login --platform {platform.name}`."
            )
        if not click.confirm(f"Not logged in to {platform.display_name}. Log in now?", default=True):
            raise click.Abort()
        login(platform)

    _write_config(project_dir, platform, settings, options, assume_yes)
    save_settings(project_dir, platform.name, settings, options)

    if not platform.builds_remotely:
        if skip_build:
            if not (project_dir / settings.output_dir).is_dir():
                raise SitepushError(f"Output directory '{settings.output_dir}' does not exist")
        else:
            build_project(settings, project_dir)

    deploy_options = DeployOptions(production=production, message=message, **options)
    logger.debug("Deploying with %s and %s", settings, deploy_options)
    argv = build_deploy_command(platform, settings.output_dir, deploy_options)
    result = deploy(platform, project_dir, argv, production=production)

    kind = "Production" if production else "Preview"
    if result.url:
        click.secho(f"{kind} deploy live at {result.url}", fg="green")
        if verify:
            status = verify_deployment(result.url)
            if status is None:
                click.secho("Could not reach the deployed URL.", fg="yellow")
            elif status >= 400:
                click.secho(f"Deployed URL responded with HTTP {status}.", fg="yellow")
            else:
                click.echo(f"Deployed URL responded with HTTP {status}.")
    else:
        click.secho(f"{kind} deploy finished, but no URL was found in the output.", fg="yellow")

    record_deployment(project_dir, result, commit=repo_state.commit if repo_state else None)


@cli.command("login")
@click.option("--platform", type=PLATFORM_CHOICE, required=True)
def login_command(platform):
    """Log in to a platform with its own CLI."""
    platform = get_platform(platform)
    ensure_cli(platform)
    login(platform)
    click.echo(f"Logged in to {platform.display_name}.")


@cli.command("check")
def check_command():
    """Report which platform CLIs are installed and logged in."""
    for platform in PLATFORMS.values():
        try:
            ensure_cli(platform)
        except CLINotFoundError:
            click.echo(f"{platform.display_name}: not installed ({platform.install_hint})")
            continue
        state = "logged in" if is_authenticated(platform) else "not logged in"
        click.echo(f"{platform.display_name}: installed, {state}")


@cli.command("history")
@click.argument("path", default=".", type=PROJECT_PATH)
@click.option("--limit", default=10, show_default=True, type=click.IntRange(min=1))
def history_command(path, limit):
    """List recent deployments of the project."""
    history = load_history(path.resolve())
    if not history:
        click.echo("No deployments recorded.")
        return
    for entry in reversed(history[-limit:]):
        kind = "prod" if entry.get("production") else "preview"
        commit = entry.get("commit") or "-"
        click.echo(
            f"{entry.get('deployed_at') or '-'}  {entry.get('platform') or '-':<8} {kind:<7} "
            f"{commit:<8} {entry.get('url') or '-'}"
        )


def main():
    cli(prog_name="sitepush")
