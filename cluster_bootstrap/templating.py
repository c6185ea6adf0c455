"""Rendering of the bundled install script and manifest templates."""

from pathlib import Path

from jinja2 import Environment, StrictUndefined

TEMPLATES_DIR = Path(__file__).parent / "templates"

_environment = Environment(autoescape=False, undefined=StrictUndefined, keep_trailing_newline=True)


def load_template(name: str) -> str:
    """Read a bundled template as opaque text."""
    return (TEMPLATES_DIR / name).read_text()


def render_template(template_text: str, variables: dict) -> str:
    """Substitute variables into template text.

    Raises:
        jinja2.UndefinedError: If the template uses a variable not provided
    """
    return _environment.from_string(template_text).render(**variables)


MASTER_INSTALL_SCRIPT = load_template("master_install_script.sh")
WORKER_INSTALL_SCRIPT = load_template("worker_install_script.sh")
CLUSTER_AUTOSCALER_MANIFEST = load_template("cluster_autoscaler.yaml.j2")
