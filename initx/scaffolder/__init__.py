"""initx scaffolder -- resolves templates and materializes new projects.

Quick usage::

    from initx.config import InitxConfig
    from initx.scaffolder import ProjectInitializer

    initializer = ProjectInitializer(InitxConfig())
    result = initializer.init_sync("rust", "myapp", "/tmp")
    if not result.ok:
        print(result.error)
"""

from initx.scaffolder.initializer import ProjectInitializer, validate_project_name
from initx.scaffolder.materializer import ScaffoldMaterializer, ScaffoldResult
from initx.scaffolder.registry import TemplateDescriptor, TemplateRegistry
from initx.scaffolder.substitution import SubstitutionEngine, is_binary
from initx.scaffolder.templates import TemplateRenderer
from initx.scaffolder.walker import EntryKind, TemplateWalker, TreeEntry, walk

__all__ = [
    "EntryKind",
    "ProjectInitializer",
    "ScaffoldMaterializer",
    "ScaffoldResult",
    "SubstitutionEngine",
    "TemplateDescriptor",
    "TemplateRegistry",
    "TemplateRenderer",
    "TemplateWalker",
    "TreeEntry",
    "is_binary",
    "validate_project_name",
    "walk",
]
