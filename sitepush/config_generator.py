import json
from pathlib import Path

from .errors import ConfigExistsError, SitepushError

VERCEL_SCHEMA = "https://openapi.vercel.sh/vercel.json"

FIREBASE_IGNORE = ["firebase.json", "**/.*", "**/node_modules/**"]


def _toml_str(value):
    # JSON string escaping is valid for TOML basic strings
    return json.dumps(value)


def render_vercel(settings, options):
    config = {"$schema": VERCEL_SCHEMA}
    slug = settings.preset.vercel_slug
    if slug:
        config["framework"] = slug
    if settings.build_command:
        config["buildCommand"] = settings.build_command
    if settings.install_command:
        config["installCommand"] = settings.install_command
    config["outputDirectory"] = settings.output_dir
    if settings.spa and not slug:
        config["rewrites"] = [{"source": "/(.*)", "destination": "/index.html"}]
    return {"vercel.json": json.dumps(config, indent=2) + "\n"}


def render_netlify(settings, options):
    lines = ["[build]"]
    if settings.build_command:
        lines.append(f"  command = {_toml_str(settings.build_command)}")
    lines.append(f"  publish = {_toml_str(settings.output_dir)}")

    if settings.spa:
        lines += [
            "",
            "[[redirects]]",
            '  from = "/*"',
            '  to = "/index.html"',
            "  status = 200",
        ]
    return {"netlify.toml": "\n".join(lines) + "\n"}


def render_firebase(settings, options):
    hosting = {"public": settings.output_dir, "ignore": FIREBASE_IGNORE}
    if settings.spa:
        hosting["rewrites"] = [{"source": "**", "destination": "/index.html"}]

    files = {"firebase.json": json.dumps({"hosting": hosting}, indent=2) + "\n"}
    project = options.get("project")
    if project:
        firebaserc = {"projects": {"default": project}}
        files[".firebaserc"] = json.dumps(firebaserc, indent=2) + "\n"
    return files


RENDERERS = {
    "vercel": render_vercel,
    "netlify": render_netlify,
    "firebase": render_firebase,
}


def render_platform_config(platform, settings, options=None):
    """Return a mapping of file name to file contents for the platform."""
    try:
        renderer = RENDERERS[platform]
    except KeyError:
        raise SitepushError(f"Unsupported platform: {platform}") from None
    return renderer(settings, options or {})


def write_platform_config(project_dir, platform, settings, options=None, overwrite=False):
    project_dir = Path(project_dir)
    files = render_platform_config(platform, settings, options)

    if not overwrite:
        for name in files:
            path = project_dir / name
            if path.exists():
                raise ConfigExistsError(path)

    written = []
    for name, content in files.items():
        path = project_dir / name
        path.write_text(content, encoding="utf-8")
        written.append(path)
    return written
