"""Schema document compilation and background reconciliation."""

from apps.api.services.schema_compiler.compiler import SchemaCompiler
from apps.api.services.schema_compiler.reconciler import SchemaReconciler

__all__ = ["SchemaCompiler", "SchemaReconciler"]
