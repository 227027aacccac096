"""TypeScript declaration generator for typemirror schemas."""

from dataclasses import dataclass

from jinja2 import Environment, PackageLoader

from .config import NamespaceMap, TranslatorConfig
from .parser import Schema
from .types import RenderedType
from .visitor import TypeVisitor

env = Environment(
    loader=PackageLoader("typemirror.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)

template = env.get_template("typescript.ts.j2")


@dataclass
class Translation:
    """Result of a translation run."""

    declarations: list[RenderedType]
    visitor: TypeVisitor

    def render(self, header: str | None = None) -> str:
        return render(self.declarations, header=header)


def render(declarations: list[RenderedType], header: str | None = None) -> str:
    """Render declarations, in order, into one TypeScript document."""
    return template.render(declarations=declarations, header=header)


def make_visitor(schema: Schema, config: TranslatorConfig) -> TypeVisitor:
    """Build a visitor for a schema, resolving the configured substitutions."""
    substitutions = {name: schema.parse_type(expr) for name, expr in config.substitutions.items()}
    return TypeVisitor(NamespaceMap(config.prefixes), substitutions)


def translate(schema: Schema, roots: list[str], config: TranslatorConfig) -> Translation:
    """Resolve every root type and collect the declarations they need.

    Roots are looked up by qualified name. The stale configuration check is
    left to the caller, which runs it once the output has been written.
    """
    visitor = make_visitor(schema, config)
    for root in roots:
        visitor.resolve(schema.lookup(root))
    return Translation(declarations=visitor.declarations, visitor=visitor)
