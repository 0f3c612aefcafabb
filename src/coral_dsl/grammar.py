"""PEG grammar for the Coral architecture DSL, in parsimonious format.

Shape of the language:
  - node_decl:  TYPE "label" [ { (property | node_decl | edge_decl)* } ]
  - property:   key: "value"           (only inside a node body)
  - edge_decl:  source -> target [ relation, key = "value", ... ]
  - // comments and whitespace (newlines included) separate statements

Whitespace strategy:
  - ws (spaces/tabs only) separates tokens inside one statement, so a
    statement never silently continues on the next line; ws1 is the
    mandatory gap between a node type and its label
  - _ (any whitespace plus // comments) separates statements

Error recovery: when no statement matches, error_line (top level) or
body_error (inside a body, stopping at "}") swallows the rest of the line
so the tree still covers the whole input. The tree walker in
parsers/tree.py turns those nodes, stray_close, and bodies without a
close_brace into ParseErrors.

This grammar is used directly by parsers/tree.py via parsimonious.
"""

GRAMMAR = r"""
source_file     = top_item* _
top_item        = _ top_statement
top_statement   = node_decl / edge_decl / stray_close / error_line

node_decl       = node_type ws1 label (ws node_body)?
node_body       = "{" body_item* _ close_brace?
body_item       = _ body_statement
body_statement  = node_decl / property / edge_decl / body_error
close_brace     = "}"
stray_close     = "}"

property        = identifier ws ":" ws string

edge_decl       = identifier ws "->" ws identifier (ws edge_attributes)?
edge_attributes = "[" ws attribute (ws "," ws attribute)* ws "]"
attribute       = keyed_attribute / identifier
keyed_attribute = identifier ws "=" ws string

node_type       = ~r"(?:service|database|external_api|actor|module|group)(?![A-Za-z0-9_])"
label           = ~r'"(?:[^"\\\n]|\\.)+"'
string          = ~r'"(?:[^"\\\n]|\\.)*"'
identifier      = ~r"[A-Za-z_][A-Za-z0-9_]*"

error_line      = ~r"[^\n]+"
body_error      = ~r"[^\n}]+"

ws              = ~r"[ \t]*"
ws1             = ~r"[ \t]+"
_               = ~r"(?:\s|//[^\n]*)*"
"""
