"""
Syntax Package.

C# front end used by the rule engine:
- Source units and spans
- Lexer and recursive-descent parser
- Immutable syntax nodes with source-preserving rendering
- Persistent tree utilities and operator precedence
"""
