"""
Token types for the Lox lexer.

Tokens carry their lexeme, their runtime literal value (for numbers and
strings) and a line/column position used in diagnostics.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Dict


class TokenType(Enum):
    """All token types recognized by the Lox lexer."""

    # --- Single-character tokens ---
    LEFT_PAREN = auto()         # (
    RIGHT_PAREN = auto()        # )
    LEFT_BRACE = auto()         # {
    RIGHT_BRACE = auto()        # }
    LEFT_BRACKET = auto()       # [ (vector literals)
    RIGHT_BRACKET = auto()      # ]
    COMMA = auto()              # ,
    DOT = auto()                # .
    MINUS = auto()              # -
    PLUS = auto()               # +
    SEMICOLON = auto()          # ;
    SLASH = auto()              # /
    STAR = auto()               # *
    QUESTION = auto()           # ? (ternary)
    COLON = auto()              # :

    # --- One or two character tokens ---
    BANG = auto()               # !
    BANG_EQUAL = auto()         # !=
    EQUAL = auto()              # =
    EQUAL_EQUAL = auto()        # ==
    GREATER = auto()            # >
    GREATER_EQUAL = auto()      # >=
    LESS = auto()               # <
    LESS_EQUAL = auto()         # <=

    # --- Literals ---
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    # --- Keywords ---
    AND = auto()
    CLASS = auto()
    ELSE = auto()
    FALSE = auto()
    FUN = auto()
    FOR = auto()
    IF = auto()
    IMPORT = auto()
    NIL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()

    # --- Special ---
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A single token with its source position.

    `literal` holds the runtime value of NUMBER (float) and STRING (str)
    tokens and is None for everything else.
    """
    type: TokenType
    lexeme: str
    literal: Any
    line: int
    column: int = 0

    def __str__(self) -> str:
        if self.literal is not None:
            return f"{self.type.name} {self.lexeme} {self.literal!r}"
        return f"{self.type.name} {self.lexeme}"


# Keyword mapping - maps string to token type
KEYWORDS: Dict[str, TokenType] = {
    "and": TokenType.AND,
    "class": TokenType.CLASS,
    "else": TokenType.ELSE,
    "false": TokenType.FALSE,
    "fun": TokenType.FUN,
    "for": TokenType.FOR,
    "if": TokenType.IF,
    "import": TokenType.IMPORT,
    "nil": TokenType.NIL,
    "or": TokenType.OR,
    "print": TokenType.PRINT,
    "return": TokenType.RETURN,
    "super": TokenType.SUPER,
    "this": TokenType.THIS,
    "true": TokenType.TRUE,
    "var": TokenType.VAR,
    "while": TokenType.WHILE,
}

# Tokens that begin a new statement; the parser resynchronizes on these.
STATEMENT_KEYWORDS: frozenset = frozenset({
    TokenType.CLASS,
    TokenType.FUN,
    TokenType.VAR,
    TokenType.FOR,
    TokenType.IF,
    TokenType.IMPORT,
    TokenType.WHILE,
    TokenType.PRINT,
    TokenType.RETURN,
})
