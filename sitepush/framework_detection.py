import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import NamedTuple

from .errors import DetectionError


class FrameworkPreset(NamedTuple):
    display_name: str
    output_dir: str
    spa: bool = False
    vercel_slug: str | None = None


# Matched top to bottom against the merged dependency map; meta-frameworks
# have to come before the libraries they pull in.
DEPENDENCY_MARKERS = [
    ("next", "nextjs"),
    ("nuxt", "nuxt"),
    ("nuxt3", "nuxt"),
    ("gatsby", "gatsby"),
    ("@sveltejs/kit", "sveltekit"),
    ("astro", "astro"),
    ("@angular/core", "angular"),
    ("react-scripts", "create-react-app"),
    ("vite", "vite"),
    ("vue", "vue"),
    ("react", "react"),
    ("svelte", "svelte"),
]

PRESETS = {
    "nextjs": FrameworkPreset("Next.js", "out", vercel_slug="nextjs"),
    "nuxt": FrameworkPreset("Nuxt", ".output/public", vercel_slug="nuxtjs"),
    "gatsby": FrameworkPreset("Gatsby", "public", vercel_slug="gatsby"),
    "sveltekit": FrameworkPreset("SvelteKit", "build", vercel_slug="sveltekit"),
    "astro": FrameworkPreset("Astro", "dist", vercel_slug="astro"),
    "angular": FrameworkPreset("Angular", "dist", spa=True, vercel_slug="angular"),
    "create-react-app": FrameworkPreset(
        "Create React App", "build", spa=True, vercel_slug="create-react-app"
    ),
    "vite": FrameworkPreset("Vite", "dist", spa=True, vercel_slug="vite"),
    "vue": FrameworkPreset("Vue", "dist", spa=True, vercel_slug="vue"),
    "react": FrameworkPreset("React", "build", spa=True),
    "svelte": FrameworkPreset("Svelte", "public", spa=True, vercel_slug="svelte"),
    "node": FrameworkPreset("Node.js", "dist"),
    "static": FrameworkPreset("Static site", "."),
    "unknown": FrameworkPreset("Unknown", "."),
}

LOCKFILES = [
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
]


@dataclass
class BuildSettings:
    framework: str
    package_manager: str = "npm"
    install_command: str = ""
    build_command: str = ""
    output_dir: str = "."

    @property
    def preset(self):
        return PRESETS.get(self.framework, PRESETS["unknown"])

    @property
    def spa(self):
        return self.preset.spa

    def to_dict(self):
        return asdict(self)


def read_package_json(project_dir):
    pkg_path = Path(project_dir) / "package.json"
    if not pkg_path.exists():
        return None

    try:
        with pkg_path.open(encoding="utf-8") as f:
            pkg = json.load(f)
    except json.JSONDecodeError as e:
        raise DetectionError(f"Could not parse {pkg_path}: {e}") from e

    if not isinstance(pkg, dict):
        raise DetectionError(f"{pkg_path} does not contain a JSON object")
    return pkg


def detect_framework(project_dir):
    project_dir = Path(project_dir)
    pkg = read_package_json(project_dir)
    if pkg is None:
        if (project_dir / "index.html").exists() or (project_dir / "public" / "index.html").exists():
            return "static"
        return "unknown"

    deps = {**pkg.get("dependencies", {}), **pkg.get("devDependencies", {})}
    for marker, framework in DEPENDENCY_MARKERS:
        if marker in deps:
            return framework
    return "node"


def detect_package_manager(project_dir):
    project_dir = Path(project_dir)
    for lockfile, manager in LOCKFILES:
        if (project_dir / lockfile).exists():
            return manager
    return "npm"


def script_command(package_manager, script):
    if package_manager in ("npm", "bun"):
        return f"{package_manager} run {script}"
    return f"{package_manager} {script}"


def infer_build_settings(project_dir, framework=None):
    """Fill in build settings from the project layout and framework defaults."""
    project_dir = Path(project_dir)
    framework = framework or detect_framework(project_dir)
    preset = PRESETS.get(framework, PRESETS["unknown"])

    if framework in ("static", "unknown"):
        output_dir = "public" if (project_dir / "public" / "index.html").exists() else "."
        return BuildSettings(framework=framework, output_dir=output_dir)

    manager = detect_package_manager(project_dir)
    pkg = read_package_json(project_dir) or {}
    scripts = pkg.get("scripts", {})
    build_command = script_command(manager, "build") if "build" in scripts else ""

    return BuildSettings(
        framework=framework,
        package_manager=manager,
        install_command=f"{manager} install",
        build_command=build_command,
        output_dir=preset.output_dir,
    )
