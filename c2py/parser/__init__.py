"""
Parser module for the C to Python transpiler.

This module provides AST node definitions and the parser implementation.
"""

from .ast_nodes import (
    walk,
    ASTNode,
    TypeSpec,
    PrimitiveTypeSpec,
    TypedefNameSpec,
    FieldDeclaration,
    StructSpec,
    Enumerator,
    EnumSpec,
    PointerTypeSpec,
    ArrayTypeSpec,
    ParameterDeclaration,
    FunctionTypeSpec,
    Expression,
    IntegerLiteral,
    FloatLiteral,
    CharLiteral,
    StringLiteral,
    Identifier,
    BinaryOperation,
    Assignment,
    UnaryOperation,
    TernaryOperation,
    CommaExpression,
    FunctionCall,
    MemberAccess,
    IndexAccess,
    TypeCast,
    ImplicitCast,
    SizeofExpression,
    InitializerItem,
    InitializerList,
    CompoundLiteral,
    Declaration,
    VariableDeclaration,
    TypedefDeclaration,
    TagDeclaration,
    FunctionDefinition,
    Statement,
    CompoundStatement,
    DeclarationStatement,
    ExpressionStatement,
    EmptyStatement,
    IfStatement,
    WhileStatement,
    DoWhileStatement,
    ForStatement,
    SwitchStatement,
    CaseStatement,
    DefaultStatement,
    ReturnStatement,
    BreakStatement,
    ContinueStatement,
    GotoStatement,
    LabeledStatement,
    TranslationUnit,
)
from .parser import Parser, TypedefTable, parse, parse_integer_text, parse_float_text

__all__ = [
    'walk',
    'ASTNode',
    'TypeSpec',
    'PrimitiveTypeSpec',
    'TypedefNameSpec',
    'FieldDeclaration',
    'StructSpec',
    'Enumerator',
    'EnumSpec',
    'PointerTypeSpec',
    'ArrayTypeSpec',
    'ParameterDeclaration',
    'FunctionTypeSpec',
    'Expression',
    'IntegerLiteral',
    'FloatLiteral',
    'CharLiteral',
    'StringLiteral',
    'Identifier',
    'BinaryOperation',
    'Assignment',
    'UnaryOperation',
    'TernaryOperation',
    'CommaExpression',
    'FunctionCall',
    'MemberAccess',
    'IndexAccess',
    'TypeCast',
    'ImplicitCast',
    'SizeofExpression',
    'InitializerItem',
    'InitializerList',
    'CompoundLiteral',
    'Declaration',
    'VariableDeclaration',
    'TypedefDeclaration',
    'TagDeclaration',
    'FunctionDefinition',
    'Statement',
    'CompoundStatement',
    'DeclarationStatement',
    'ExpressionStatement',
    'EmptyStatement',
    'IfStatement',
    'WhileStatement',
    'DoWhileStatement',
    'ForStatement',
    'SwitchStatement',
    'CaseStatement',
    'DefaultStatement',
    'ReturnStatement',
    'BreakStatement',
    'ContinueStatement',
    'GotoStatement',
    'LabeledStatement',
    'TranslationUnit',
    'Parser',
    'TypedefTable',
    'parse',
    'parse_integer_text',
    'parse_float_text',
]
