import click


class SitepushError(click.ClickException):
    """Base error; click prints the message and exits with status 1."""


class DetectionError(SitepushError):
    pass


class ConfigExistsError(SitepushError):
    def __init__(self, path):
        super().__init__(f"{path} already exists")
        self.path = path


class CLINotFoundError(SitepushError):
    def __init__(self, binary, install_hint):
        super().__init__(f"{binary} not found in PATH. Install it with: {install_hint}")
        self.binary = binary


class BuildError(SitepushError):
    def __init__(self, message, returncode=None):
        super().__init__(message)
        self.returncode = returncode


class DeployError(SitepushError):
    def __init__(self, message, returncode=None, output=""):
        super().__init__(message)
        self.returncode = returncode
        self.output = output
