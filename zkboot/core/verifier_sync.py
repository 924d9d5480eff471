"""
VERIFYING KEY SYNCHRONIZATION
=============================

The Groth16 verifying key is embedded twice: as `uint256 constant`
declarations in the Solidity verifier and as `const ...: &str`
declarations in the Rust host verifier. The Solidity file is the source
of truth; the Rust literals are rewritten to match it.

Each dialect has a small tokenizer and a declaration matcher over its
token stream. Only the literal of a matched declaration is replaced, so
every other byte of the target file is preserved. A declaration that
cannot be found is reported, not raised.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

from .config import BootstrapConfig
from .errors import AvailabilityError, SyncError
from .formatter import SourceFormatter, rustfmt

logger = logging.getLogger(__name__)

# Solidity name -> Rust name, in file order
VERIFYING_KEY_CONSTANTS: Tuple[Tuple[str, str], ...] = (
    ("alphax", "ALPHA_X"),
    ("alphay", "ALPHA_Y"),
    ("betax1", "BETA_X1"),
    ("betax2", "BETA_X2"),
    ("betay1", "BETA_Y1"),
    ("betay2", "BETA_Y2"),
    ("gammax1", "GAMMA_X1"),
    ("gammax2", "GAMMA_X2"),
    ("gammay1", "GAMMA_Y1"),
    ("gammay2", "GAMMA_Y2"),
    ("deltax1", "DELTA_X1"),
    ("deltax2", "DELTA_X2"),
    ("deltay1", "DELTA_Y1"),
    ("deltay2", "DELTA_Y2"),
    ("IC0x", "IC0_X"),
    ("IC0y", "IC0_Y"),
    ("IC1x", "IC1_X"),
    ("IC1y", "IC1_Y"),
    ("IC2x", "IC2_X"),
    ("IC2y", "IC2_Y"),
    ("IC3x", "IC3_X"),
    ("IC3y", "IC3_Y"),
    ("IC4x", "IC4_X"),
    ("IC4y", "IC4_Y"),
)


class Token(NamedTuple):
    kind: str
    value: str
    start: int
    end: int


_COMMON_TOKENS = r'''
  | (?P<NUMBER>\d[0-9A-Za-z_]*)
  | (?P<IDENT>[A-Za-z_$][A-Za-z0-9_$]*)
  | (?P<SPACE>\s+)
  | (?P<PUNCT>.)
'''

_SOLIDITY_TOKEN_RE = re.compile(
    r'''
    (?P<COMMENT>//[^\n]*|/\*.*?\*/)
  | (?P<STRING>"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')
    ''' + _COMMON_TOKENS,
    re.VERBOSE | re.DOTALL,
)

# Rust adds raw strings (r"..", r#".."#) and char literals; a quote that
# starts neither is a lifetime and stays PUNCT.
_RUST_TOKEN_RE = re.compile(
    r'''
    (?P<COMMENT>//[^\n]*|/\*.*?\*/)
  | (?P<RAW>b?r(?P<HASHES>\#*)".*?"(?P=HASHES))
  | (?P<STRING>"(?:\\.|[^"\\])*")
  | (?P<CHAR>b?'(?:\\u\{[0-9A-Fa-f]+\}|\\x[0-9A-Fa-f]{2}|\\.|[^'\\\n])')
    ''' + _COMMON_TOKENS,
    re.VERBOSE | re.DOTALL,
)


def tokenize(text: str, pattern: re.Pattern = _SOLIDITY_TOKEN_RE) -> Iterator[Token]:
    """C-family tokens, without whitespace and comments"""
    for m in pattern.finditer(text):
        kind = m.lastgroup
        if kind in ('SPACE', 'COMMENT'):
            continue
        yield Token(kind, m.group(), m.start(), m.end())


@dataclass(frozen=True)
class Declaration:
    name: str
    value: str
    literal_start: int
    literal_end: int


class Dialect:
    """Finds `name = literal` constant declarations in one language"""

    name = "generic"
    token_pattern = _SOLIDITY_TOKEN_RE

    def declarations(self, text: str) -> Iterator[Declaration]:
        tokens = list(tokenize(text, self.token_pattern))
        for i in range(len(tokens)):
            decl = self.match(tokens, i)
            if decl is not None:
                yield decl

    def find(self, text: str, name: str) -> Optional[Declaration]:
        for decl in self.declarations(text):
            if decl.name == name:
                return decl
        return None

    def match(self, tokens: Sequence[Token], i: int) -> Optional[Declaration]:
        raise NotImplementedError

    def render_literal(self, value: str) -> str:
        raise NotImplementedError


def _is(tokens: Sequence[Token], i: int, value: str) -> bool:
    return i < len(tokens) and tokens[i].value == value


class SolidityDialect(Dialect):
    """`uint256 [visibility] constant NAME = 123;`"""

    name = "solidity"
    VISIBILITY = ("public", "private", "internal")

    def match(self, tokens, i):
        if not _is(tokens, i, "uint256"):
            return None
        j = i + 1
        while j < len(tokens) and tokens[j].value in self.VISIBILITY:
            j += 1
        if not _is(tokens, j, "constant"):
            return None
        if j + 4 >= len(tokens):
            return None
        name, eq, literal, semi = tokens[j + 1:j + 5]
        if name.kind != 'IDENT' or eq.value != "=" or semi.value != ";":
            return None
        if literal.kind != 'NUMBER' or not literal.value.isdigit():
            return None
        return Declaration(name.value, literal.value, literal.start, literal.end)

    def render_literal(self, value):
        return value


class RustDialect(Dialect):
    """`[pub] const NAME: &str = "123";`"""

    name = "rust"
    token_pattern = _RUST_TOKEN_RE

    def match(self, tokens, i):
        if not _is(tokens, i, "const"):
            return None
        j = i + 1
        if j >= len(tokens) or tokens[j].kind != 'IDENT':
            return None
        name = tokens[j]
        j += 1
        if not (_is(tokens, j, ":") and _is(tokens, j + 1, "&")):
            return None
        j += 2
        # optional 'static lifetime
        if _is(tokens, j, "'") and j + 1 < len(tokens) and tokens[j + 1].kind == 'IDENT':
            j += 2
        if not (_is(tokens, j, "str") and _is(tokens, j + 1, "=")):
            return None
        j += 2
        if j + 1 >= len(tokens) or not _is(tokens, j + 1, ";"):
            return None
        literal = tokens[j]
        if literal.kind != 'STRING' or not literal.value[1:-1].isdigit():
            return None
        return Declaration(name.value, literal.value[1:-1], literal.start, literal.end)

    def render_literal(self, value):
        return f'"{value}"'


SOLIDITY = SolidityDialect()
RUST = RustDialect()


@dataclass
class SyncResult:
    text: str
    replaced: List[Tuple[str, str, str]] = field(default_factory=list)  # (source, target, value)
    missing_source: List[str] = field(default_factory=list)
    missing_target: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.replaced)


def synchronize(source_text: str, target_text: str,
                name_mapping: Sequence[Tuple[str, str]] = VERIFYING_KEY_CONSTANTS,
                source_dialect: Dialect = SOLIDITY,
                target_dialect: Dialect = RUST) -> SyncResult:
    """Copy constant values from `source_text` into `target_text`"""
    result = SyncResult(text=target_text)
    for source_name, target_name in name_mapping:
        source = source_dialect.find(source_text, source_name)
        if source is None:
            logger.warning("%s not found", source_name)
            result.missing_source.append(source_name)
            continue

        target = target_dialect.find(result.text, target_name)
        if target is None:
            logger.warning("%s not found in %s source", target_name, target_dialect.name)
            result.missing_target.append(target_name)
            continue

        result.text = (
            result.text[:target.literal_start]
            + target_dialect.render_literal(source.value)
            + result.text[target.literal_end:]
        )
        if target.value != source.value:
            result.replaced.append((source_name, target_name, source.value))
    return result


def sync_constants(source_text: str, target_text: str,
                   name_mapping: Sequence[Tuple[str, str]] = VERIFYING_KEY_CONSTANTS) -> str:
    return synchronize(source_text, target_text, name_mapping).text


def _read(path: Path, what: str) -> str:
    try:
        return path.read_text()
    except OSError as e:
        raise AvailabilityError(f"failed to read the {what} from {path}: {e}") from e


def sync_verifying_key(config: BootstrapConfig,
                       formatter: Optional[SourceFormatter] = None) -> SyncResult:
    """Rewrite the Rust verifier's key constants from the Solidity verifier"""
    solidity_path = config.path(config.solidity_verifier)
    rust_path = config.path(config.rust_verifier)

    solidity_code = _read(solidity_path, "Solidity verifier")
    rust_code = _read(rust_path, "Rust verifier")

    result = synchronize(solidity_code, rust_code)
    if len(result.missing_source) == len(VERIFYING_KEY_CONSTANTS):
        raise SyncError(f"no verifying key constants found in {solidity_path}")

    try:
        rust_path.write_text(result.text)
    except OSError as e:
        raise AvailabilityError(f"failed to write the Rust verifier to {rust_path}: {e}") from e
    logger.info("updated %d constant(s) in %s", len(result.replaced), rust_path)

    (formatter or rustfmt()).format(rust_path)
    return result
