from .analysis import ModuleT, analyze_module
from .classify import Role, classify_module
from .types import type_from_annotation
