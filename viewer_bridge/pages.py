"""
Jinja2 rendering for the HTML pages served by the bridge.

Templates live in ``viewer_bridge/templates``. Autoescaping is on for every
``.html`` template, so request-supplied values (filenames, OAuth error text)
are safe to interpolate; values injected into ``<script>`` blocks must go
through the ``tojson`` filter.
"""

from typing import Any

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

_jinja_env = Environment(
    loader=PackageLoader("viewer_bridge", "templates"),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
)


def render_page(name: str, **context: Any) -> str:
    """
    Render a page template.

    Raises:
        jinja2.TemplateNotFound: If ``name`` does not exist
        jinja2.UndefinedError: If the template uses a value not in ``context``
    """
    return _jinja_env.get_template(name).render(**context)
