"""Split a raw input line into argument tokens, honoring quotes and escapes."""

SINGLE_QUOTE = "'"
DOUBLE_QUOTE = '"'
BACKSLASH = "\\"

_SPECIAL_CHARS = (SINGLE_QUOTE, DOUBLE_QUOTE, BACKSLASH)


def tokenize(line: str) -> list[str]:
    """Tokenize a shell input line.

    Lines without quotes or backslashes are simply split on whitespace.
    Anything else goes through a character scanner:

    - outside quotes a backslash makes the next character literal
    - inside single quotes everything is literal
    - inside double quotes a backslash only escapes '\\' and '"'
    - unquoted spaces separate tokens, adjacent quoted runs are joined

    An unterminated quote is not an error: the collected text becomes the
    last token. A lone empty quoted run ('' or "") yields no token.
    """
    line = line.strip()
    if not line:
        return []
    if not any(ch in line for ch in _SPECIAL_CHARS):
        return line.split()
    return _scan_quoted(line)


def _scan_quoted(line: str) -> list[str]:
    tokens: list[str] = []
    current: list[str] = []
    quote: str | None = None  # None, "'", or '"'

    i = 0
    while i < len(line):
        ch = line[i]

        if ch == BACKSLASH and i + 1 < len(line) and quote != SINGLE_QUOTE:
            nxt = line[i + 1]
            if quote is None or nxt in (BACKSLASH, DOUBLE_QUOTE):
                current.append(nxt)
                i += 2
                continue
            # Inside double quotes other characters keep the backslash
            current.append(ch)
        elif quote is None and ch in (SINGLE_QUOTE, DOUBLE_QUOTE):
            quote = ch
        elif quote is not None and ch == quote:
            quote = None
        elif ch == " " and quote is None:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(ch)
        i += 1

    if current:
        tokens.append("".join(current))
    return tokens
