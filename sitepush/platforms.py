"""Wrappers around the Vercel, Netlify and Firebase command line tools."""

import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

import click

from .errors import CLINotFoundError, DeployError, SitepushError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Platform:
    name: str
    display_name: str
    binary: str
    install_hint: str
    login_args: tuple
    auth_check_args: tuple
    config_file: str
    token_env: str
    cache_dir: str
    builds_remotely: bool = False


PLATFORMS = {
    "vercel": Platform(
        name="vercel",
        display_name="Vercel",
        binary="vercel",
        install_hint="npm i -g vercel",
        login_args=("login",),
        auth_check_args=("whoami",),
        config_file="vercel.json",
        token_env="VERCEL_TOKEN",
        cache_dir=".vercel",
        builds_remotely=True,
    ),
    "netlify": Platform(
        name="netlify",
        display_name="Netlify",
        binary="netlify",
        install_hint="npm i -g netlify-cli",
        login_args=("login",),
        auth_check_args=("status",),
        config_file="netlify.toml",
        token_env="NETLIFY_AUTH_TOKEN",
        cache_dir=".netlify",
    ),
    "firebase": Platform(
        name="firebase",
        display_name="Firebase Hosting",
        binary="firebase",
        install_hint="npm i -g firebase-tools",
        login_args=("login",),
        auth_check_args=("projects:list",),
        config_file="firebase.json",
        token_env="FIREBASE_TOKEN",
        cache_dir=".firebase",
    ),
}

URL_RE = re.compile(r"https://[^\s'\"<>]+")

# Lines the vendor CLIs print next to the final URL, most specific first.
URL_LABELS = {
    "netlify": ("Website URL:", "Website draft URL:", "Deploy URL:", "Draft URL:"),
    "firebase": ("Hosting URL:", "Channel URL"),
    "vercel": ("Production:", "Preview:"),
}


@dataclass
class DeployOptions:
    production: bool = True
    site: str | None = None
    project: str | None = None
    scope: str | None = None
    channel: str = "preview"
    message: str | None = None


@dataclass
class DeployResult:
    platform: str
    url: str | None
    production: bool
    output: str = ""


def get_platform(name):
    try:
        return PLATFORMS[name]
    except KeyError:
        raise SitepushError(
            f"Unsupported platform: {name}. Choose one of: {', '.join(PLATFORMS)}"
        ) from None


def ensure_cli(platform):
    path = shutil.which(platform.binary)
    if path is None:
        raise CLINotFoundError(platform.binary, platform.install_hint)
    return path


def _token(platform):
    return os.environ.get(platform.token_env)


def is_authenticated(platform, cwd=None):
    argv = [platform.binary, *platform.auth_check_args]
    if platform.name == "vercel" and _token(platform):
        argv += ["--token", _token(platform)]
    logger.debug("Checking %s authentication", platform.name)
    result = subprocess.run(argv, cwd=cwd, capture_output=True, encoding="utf-8", errors="replace")
    if result.returncode != 0:
        return False
    # netlify status exits 0 while logged out
    return "Not logged in" not in result.stdout


def login(platform):
    argv = [platform.binary, *platform.login_args]
    logger.debug("Running %s", argv)
    result = subprocess.run(argv)
    if result.returncode != 0:
        raise SitepushError(f"{platform.display_name} login failed (exit code {result.returncode})")


def build_deploy_command(platform, output_dir, options):
    if platform.name == "vercel":
        argv = ["vercel", "deploy", "--yes"]
        if options.production:
            argv.append("--prod")
        if options.scope:
            argv += ["--scope", options.scope]
        if _token(platform):
            argv += ["--token", _token(platform)]
        return argv

    if platform.name == "netlify":
        argv = ["netlify", "deploy", "--dir", str(output_dir)]
        if options.production:
            argv.append("--prod")
        if options.site:
            argv += ["--site", options.site]
        if options.message:
            argv += ["--message", options.message]
        return argv

    if platform.name == "firebase":
        if options.production:
            argv = ["firebase", "deploy", "--only", "hosting"]
            if options.message:
                argv += ["--message", options.message]
        else:
            argv = ["firebase", "hosting:channel:deploy", options.channel]
        if options.project:
            argv += ["--project", options.project]
        return argv

    raise SitepushError(f"Unsupported platform: {platform.name}")


def extract_deploy_url(platform_name, output):
    lines = output.splitlines()
    for label in URL_LABELS.get(platform_name, ()):
        for line in reversed(lines):
            if label in line:
                match = URL_RE.search(line)
                if match:
                    return match.group(0).rstrip(".,")

    urls = URL_RE.findall(output)
    if platform_name == "vercel":
        vercel_urls = [u for u in urls if ".vercel.app" in u]
        if vercel_urls:
            return vercel_urls[-1]
    return urls[-1].rstrip(".,") if urls else None


def _redact(argv, platform):
    token = _token(platform)
    return [("***" if token and arg == token else arg) for arg in argv]


def deploy(platform, project_dir, argv, production=True):
    """Run the vendor deploy command, echoing its output as it arrives."""
    project_dir = Path(project_dir)
    click.echo(f"Running: {' '.join(_redact(argv, platform))}")
    logger.debug("Deploying %s from %s", platform.name, project_dir)

    captured = []
    with subprocess.Popen(
        argv,
        cwd=project_dir,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        encoding="utf-8",
        errors="replace",
    ) as proc:
        for line in proc.stdout:
            click.echo(line, nl=False)
            captured.append(line)
        returncode = proc.wait()

    output = "".join(captured)
    if returncode != 0:
        raise DeployError(
            f"{platform.display_name} deploy failed with exit code {returncode}",
            returncode=returncode,
            output=output,
        )

    return DeployResult(
        platform=platform.name,
        url=extract_deploy_url(platform.name, output),
        production=production,
        output=output,
    )
