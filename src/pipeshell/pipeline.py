"""Parse tokens into a chain of pipeline stages with their redirections."""

import enum
from dataclasses import dataclass, field

from pipeshell.tokenizer import tokenize

PIPE = "|"


class RedirectStream(enum.Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


# operator -> (redirected stream, append)
REDIRECT_OPERATORS: dict[str, tuple[RedirectStream, bool]] = {
    ">": (RedirectStream.STDOUT, False),
    "1>": (RedirectStream.STDOUT, False),
    "2>": (RedirectStream.STDERR, False),
    ">>": (RedirectStream.STDOUT, True),
    "1>>": (RedirectStream.STDOUT, True),
    "2>>": (RedirectStream.STDERR, True),
}


@dataclass
class Command:
    """A single stage of a pipeline, linked to the stage it feeds."""

    name: str = ""
    args: list[str] = field(default_factory=list)
    redirect_target: str | None = None
    redirect_stream: RedirectStream = RedirectStream.STDOUT
    append: bool = False
    next: "Command | None" = None

    def stages(self) -> list["Command"]:
        """Flatten the chain into a list of stages, each with `next` cleared."""
        stages: list[Command] = []
        node: Command | None = self
        while node is not None:
            stages.append(
                Command(
                    name=node.name,
                    args=list(node.args),
                    redirect_target=node.redirect_target,
                    redirect_stream=node.redirect_stream,
                    append=node.append,
                )
            )
            node = node.next
        return stages


def parse(line: str) -> Command:
    """Tokenize and parse one input line."""
    return parse_tokens(tokenize(line))


def parse_tokens(tokens: list[str]) -> Command:
    """Build a Command chain from a token list.

    The first operator that has a following token decides the result; the
    operator and its operand are removed. For '|' everything after the pipe
    is parsed recursively as the next stage. A redirection seen before a
    later '|' wins, and that '|' stays an ordinary argument. An operator at
    the very end of the list is kept as a literal argument.
    """
    for i, token in enumerate(tokens):
        if i + 1 >= len(tokens):
            continue

        match token:
            case "|":
                return _make_command(tokens[:i], next=parse_tokens(tokens[i + 1 :]))
            case op if op in REDIRECT_OPERATORS:
                stream, append = REDIRECT_OPERATORS[op]
                return _make_command(
                    tokens[:i] + tokens[i + 2 :],
                    redirect_target=tokens[i + 1],
                    redirect_stream=stream,
                    append=append,
                )

    return _make_command(tokens)


def _make_command(words: list[str], **kwargs) -> Command:
    if not words:
        return Command(**kwargs)
    return Command(name=words[0].strip(), args=words[1:], **kwargs)
