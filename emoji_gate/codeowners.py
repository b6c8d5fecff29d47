import posixpath
from fnmatch import fnmatchcase
from typing import Iterable, List, Set, TextIO, Union

from emoji_gate.errors import CodeownersReadError, InvalidPatternError
from emoji_gate.models import MatchPolicy, OwnershipRule

CodeownersSource = Union[str, TextIO]

WILDCARD = "*"


def _iter_lines(source: CodeownersSource) -> Iterable[str]:
    if isinstance(source, str):
        return source.splitlines()
    try:
        return source.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise CodeownersReadError(f"error reading CODEOWNERS content: {e}") from e


def parse_codeowners(source: CodeownersSource) -> List[OwnershipRule]:
    """
    Parse CODEOWNERS text into rules, in file order.
    Blank lines and '#' comments are skipped. A line with a pattern but no
    owners is skipped with a warning.
    """
    rules: List[OwnershipRule] = []
    for line in _iter_lines(source):
        s = line.strip()
        if not s or s.startswith("#"):
            continue
        parts = s.split()
        if len(parts) < 2:
            print(f"Warning: ignored malformed CODEOWNERS line: {s}")
            continue
        owners = tuple(o[1:] if o.startswith("@") else o for o in parts[1:])
        rules.append(OwnershipRule(path_pattern=parts[0], owners=owners))
    return rules


def _normalize_path(path: str) -> str:
    # "/terraform/deploy" -> "terraform/deploy"; "." -> "" (repository root)
    p = (path or "").replace("\\", "/").strip()
    p = posixpath.normpath(p) if p else ""
    p = p.lstrip("/")
    return "" if p == "." else p


def _normalize_pattern(pattern: str) -> str:
    return pattern.replace("\\", "/").lstrip("/") if pattern != WILDCARD else pattern


def _validate_glob(pattern: str) -> None:
    """Reject patterns with an unterminated '[' character class."""
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "[":
            j = i + 1
            if j < n and pattern[j] in "!^":
                j += 1
            # a ']' right after the opening bracket is a literal member
            if j < n and pattern[j] == "]":
                j += 1
            close = pattern.find("]", j)
            if close == -1:
                raise InvalidPatternError(pattern, "unterminated character class")
            i = close + 1
            continue
        i += 1


def glob_matches(pattern: str, path: str) -> bool:
    """
    Glob match of a CODEOWNERS pattern against a normalized path.
    A pattern also owns everything below the directory it names, so
    'terraform/', 'terraform' and 'terraform/*' all match 'terraform/deploy/x'.
    """
    if pattern == WILDCARD:
        return True
    _validate_glob(pattern)
    pat = _normalize_pattern(pattern)
    if not pat:
        return True
    base = pat.rstrip("/")
    if fnmatchcase(path, base):
        return True
    return fnmatchcase(path, f"{base}/*")


def prefix_matches(pattern: str, path: str) -> bool:
    if pattern == WILDCARD:
        return True
    return path.startswith(_normalize_pattern(pattern))


class CodeownersMatcher:
    """Resolves the owners of one path under a fixed matching policy."""

    def __init__(self, policy: MatchPolicy = MatchPolicy.LAST_MATCH):
        self.policy = MatchPolicy(policy)

    def owners_for(self, rules: List[OwnershipRule], target_path: str) -> Set[str]:
        path = _normalize_path(target_path)

        if self.policy == MatchPolicy.PREFIX_UNION:
            owners: Set[str] = set()
            for rule in rules:
                if prefix_matches(rule.path_pattern, path):
                    owners.update(rule.owners)
            return owners

        applicable: Set[str] = set()
        for rule in rules:
            if glob_matches(rule.path_pattern, path):
                applicable = set(rule.owners)
        return applicable

    def resolve(self, source: CodeownersSource, target_path: str) -> Set[str]:
        return self.owners_for(parse_codeowners(source), target_path)


def resolve_owners(
    source: CodeownersSource,
    target_path: str,
    policy: MatchPolicy = MatchPolicy.LAST_MATCH,
) -> Set[str]:
    return CodeownersMatcher(policy).resolve(source, target_path)
