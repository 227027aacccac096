"""typemirror TypeScript declaration generator."""

from .config import NamespaceMap as NamespaceMap
from .config import TranslatorConfig as TranslatorConfig
from .config import load_config as load_config
from .parser import Schema as Schema
from .parser import SchemaError as SchemaError
from .parser import parse as parse
from .types import *
from .visitor import TranslationError as TranslationError
from .visitor import TypeVisitor as TypeVisitor
