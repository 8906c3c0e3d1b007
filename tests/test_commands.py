"""CLI tests using click's CliRunner with the vendor tools stubbed out."""

import json

import pytest
import yaml
from click.testing import CliRunner

from sitepush import commands
from sitepush.git_utils import RepoState
from sitepush.platforms import DeployResult


@pytest.fixture
def vite_project(make_project):
    return make_project(
        {"scripts": {"build": "vite build"}, "devDependencies": {"vite": "5"}},
        files=["package-lock.json"],
    )


@pytest.fixture
def stubs(monkeypatch):
    calls = {"deploy": [], "build": [], "login": []}

    def fake_deploy(platform, project_dir, argv, production=True):
        calls["deploy"].append(argv)
        return DeployResult(platform.name, "https://site.example.app", production)

    def fake_build(settings, project_dir):
        calls["build"].append(settings)
        (project_dir / settings.output_dir).mkdir(exist_ok=True)

    monkeypatch.delenv("SITEPUSH_PLATFORM", raising=False)
    monkeypatch.setattr(commands, "ensure_cli", lambda platform: f"/usr/bin/{platform.binary}")
    monkeypatch.setattr(commands, "is_authenticated", lambda platform, cwd=None: True)
    monkeypatch.setattr(commands, "login", lambda platform: calls["login"].append(platform.name))
    monkeypatch.setattr(commands, "deploy", fake_deploy)
    monkeypatch.setattr(commands, "build_project", fake_build)
    monkeypatch.setattr(commands, "verify_deployment", lambda url: 200)
    monkeypatch.setattr(commands, "get_repo_state", lambda path: None)
    return calls


def test_detect(vite_project):
    result = CliRunner().invoke(commands.cli, ["detect", str(vite_project)])
    assert result.exit_code == 0, result.output
    assert "Vite (vite)" in result.output
    assert "npm run build" in result.output


def test_init_with_yes_writes_config_and_settings(vite_project, stubs):
    result = CliRunner().invoke(
        commands.cli, ["init", str(vite_project), "--platform", "netlify", "--yes"]
    )
    assert result.exit_code == 0, result.output
    assert 'publish = "dist"' in (vite_project / "netlify.toml").read_text()
    saved = yaml.safe_load((vite_project / ".sitepush.yml").read_text())
    assert saved["platform"] == "netlify"
    assert saved["build"]["build_command"] == "npm run build"


def test_deploy_netlify_interactive(vite_project, stubs):
    # platform, build command, output dir, production?
    user_input = "netlify\n\n\ny\n"
    result = CliRunner().invoke(commands.cli, ["deploy", str(vite_project)], input=user_input)

    assert result.exit_code == 0, result.output
    assert len(stubs["build"]) == 1
    assert stubs["deploy"] == [["netlify", "deploy", "--dir", "dist", "--prod"]]
    assert "Production deploy live at https://site.example.app" in result.output

    history = json.loads((vite_project / ".sitepush" / "history.json").read_text())
    assert history[0]["platform"] == "netlify"


def test_deploy_vercel_builds_remotely(vite_project, stubs):
    result = CliRunner().invoke(
        commands.cli, ["deploy", str(vite_project), "--platform", "vercel", "--preview", "--yes"]
    )
    assert result.exit_code == 0, result.output
    assert stubs["build"] == []
    assert stubs["deploy"][0][:3] == ["vercel", "deploy", "--yes"]
    assert "--prod" not in stubs["deploy"][0]
    assert "Preview deploy live" in result.output
    assert json.loads((vite_project / "vercel.json").read_text())["framework"] == "vite"


def test_deploy_keeps_existing_config_when_declined(vite_project, stubs):
    (vite_project / "netlify.toml").write_text("# custom\n")
    user_input = "\n\nn\n"  # build command, output dir, overwrite?
    result = CliRunner().invoke(
        commands.cli, ["deploy", str(vite_project), "--platform", "netlify", "--prod"], input=user_input
    )
    assert result.exit_code == 0, result.output
    assert (vite_project / "netlify.toml").read_text() == "# custom\n"
    assert "Keeping existing netlify.toml" in result.output


def test_deploy_uses_saved_settings(vite_project, stubs):
    (vite_project / ".sitepush.yml").write_text(
        yaml.safe_dump(
            {
                "platform": "firebase",
                "build": {"framework": "vite", "build_command": "npm run build:prod", "output_dir": "web"},
                "options": {"project": "my-proj"},
            }
        )
    )
    result = CliRunner().invoke(commands.cli, ["deploy", str(vite_project), "--yes"])
    assert result.exit_code == 0, result.output
    assert stubs["build"][0].build_command == "npm run build:prod"
    assert stubs["deploy"] == [["firebase", "deploy", "--only", "hosting", "--project", "my-proj"]]


def test_deploy_requires_platform_with_yes(vite_project, stubs):
    result = CliRunner().invoke(commands.cli, ["deploy", str(vite_project), "--yes"])
    assert result.exit_code == 1
    assert "pass --platform" in result.output


def test_deploy_not_logged_in_with_yes_fails(vite_project, stubs, monkeypatch):
    monkeypatch.setattr(commands, "is_authenticated", lambda platform, cwd=None: False)
    result = CliRunner().invoke(
        commands.cli, ["deploy", str(vite_project), "--platform", "netlify", "--yes"]
    )
    assert result.exit_code == 1
    assert "Not logged in to Netlify" in result.output
    assert stubs["deploy"] == []


def test_deploy_prompts_login(vite_project, stubs, monkeypatch):
    monkeypatch.setattr(commands, "is_authenticated", lambda platform, cwd=None: False)
    # build command, output dir, production?, log in now?
    result = CliRunner().invoke(
        commands.cli, ["deploy", str(vite_project), "--platform", "netlify"], input="\n\ny\ny\n"
    )
    assert result.exit_code == 0, result.output
    assert stubs["login"] == ["netlify"]


def test_deploy_dirty_tree_message_and_gitignore(vite_project, stubs, monkeypatch):
    monkeypatch.setattr(
        commands, "get_repo_state", lambda path: RepoState("main", "abc1234", True)
    )
    result = CliRunner().invoke(
        commands.cli, ["deploy", str(vite_project), "--platform", "netlify", "--yes"]
    )
    assert result.exit_code == 0, result.output
    assert "uncommitted changes" in result.output
    assert stubs["deploy"][0][-2:] == ["--message", "main@abc1234"]
    assert ".netlify" in (vite_project / ".gitignore").read_text()

    history = json.loads((vite_project / ".sitepush" / "history.json").read_text())
    assert history[0]["commit"] == "abc1234"


def test_skip_build_requires_output_dir(vite_project, stubs):
    result = CliRunner().invoke(
        commands.cli,
        ["deploy", str(vite_project), "--platform", "netlify", "--skip-build", "--yes"],
    )
    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_history_listing(vite_project, stubs):
    runner = CliRunner()
    assert "No deployments recorded." in runner.invoke(
        commands.cli, ["history", str(vite_project)]
    ).output

    runner.invoke(commands.cli, ["deploy", str(vite_project), "--platform", "vercel", "--yes"])
    result = runner.invoke(commands.cli, ["history", str(vite_project)])
    assert "vercel" in result.output
    assert "https://site.example.app" in result.output


def test_check_reports_missing_cli(monkeypatch):
    from sitepush.errors import CLINotFoundError

    def fake_ensure(platform):
        if platform.name == "firebase":
            raise CLINotFoundError(platform.binary, platform.install_hint)
        return platform.binary

    monkeypatch.setattr(commands, "ensure_cli", fake_ensure)
    monkeypatch.setattr(commands, "is_authenticated", lambda platform, cwd=None: platform.name == "vercel")
    result = CliRunner().invoke(commands.cli, ["check"])
    assert "Vercel: installed, logged in" in result.output
    assert "Netlify: installed, not logged in" in result.output
    assert "Firebase Hosting: not installed" in result.output


def test_framework_change_is_detected_on_next_run(make_project, stubs):
    project = make_project(files=["index.html"])
    runner = CliRunner()
    result = runner.invoke(commands.cli, ["init", str(project), "--platform", "netlify", "--yes"])
    assert result.exit_code == 0, result.output
    saved = yaml.safe_load((project / ".sitepush.yml").read_text())
    assert saved["build"]["framework"] == "static"

    make_project({"scripts": {"build": "vite build"}, "devDependencies": {"vite": "5"}})
    (project / "netlify.toml").unlink()
    result = runner.invoke(commands.cli, ["init", str(project), "--yes"])
    assert result.exit_code == 0, result.output

    saved = yaml.safe_load((project / ".sitepush.yml").read_text())
    assert saved["build"]["framework"] == "vite"
    assert saved["build"]["build_command"] == "npm run build"
    assert saved["build"]["output_dir"] == "dist"


def test_history_tolerates_incomplete_records(vite_project):
    path = vite_project / ".sitepush" / "history.json"
    path.parent.mkdir()
    path.write_text(json.dumps(["junk", {"platform": None, "url": None, "production": True}]))

    result = CliRunner().invoke(commands.cli, ["history", str(vite_project)])
    assert result.exit_code == 0, result.output
    assert "prod" in result.output
