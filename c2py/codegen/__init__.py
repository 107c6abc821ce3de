"""
Code generation module for the C to Python transpiler.

This module provides Python code generation from resolved C AST nodes.
"""

from .context import CodeGenerationContext, FlowContext
from .names import NameAllocator, python_name, member_names
from .base import BaseGenerator
from .expression import ExpressionGenerator
from .statement import StatementGenerator
from .definition import DefinitionGenerator
from .generator import PythonCodeGenerator, generate

__all__ = [
    'CodeGenerationContext',
    'FlowContext',
    'NameAllocator',
    'python_name',
    'member_names',
    'BaseGenerator',
    'ExpressionGenerator',
    'StatementGenerator',
    'DefinitionGenerator',
    'PythonCodeGenerator',
    'generate',
]
