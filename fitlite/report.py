"""Text reports of diagnostic dump entries."""

from collections.abc import Iterable

from jinja2 import Environment, PackageLoader

from .proto.record import DiagnosticEntry

env = Environment(
    loader=PackageLoader("fitlite", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("dump.txt.j2")


def render_dump(entries: Iterable[DiagnosticEntry], title: str | None = None) -> str:
    """Render dumped fields as a fixed width text table."""
    return template.render(entries=list(entries), title=title)
