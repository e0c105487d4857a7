"""Display-only line diff for upgrade previews.

The pairing is a single greedy pass: equal lines at the same position are
context, any mismatch emits one remove plus one add. An insertion therefore
shifts every following line into remove/add pairs. Never feed this output to
a patch tool.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

LineKind = Literal["add", "remove", "context"]
_PREFIX: dict[str, str] = {"add": "+", "remove": "-", "context": " "}


@dataclass(frozen=True)
class DiffLine:
    kind: LineKind
    content: str

    def render(self) -> str:
        return f"{_PREFIX[self.kind]}{self.content}"


@dataclass(frozen=True)
class DiffHunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: list[DiffLine] = field(default_factory=list)


@dataclass(frozen=True)
class FileDiff:
    file: str
    kind: Literal["added", "modified", "deleted"]
    before: str | None = None
    after: str | None = None
    hunks: list[DiffHunk] = field(default_factory=list)


def _pair_lines(old_lines: list[str], new_lines: list[str]) -> list[DiffLine]:
    result: list[DiffLine] = []
    for old, new in zip(old_lines, new_lines, strict=False):
        if old == new:
            result.append(DiffLine("context", old))
        else:
            result.append(DiffLine("remove", old))
            result.append(DiffLine("add", new))
    shared = min(len(old_lines), len(new_lines))
    result.extend(DiffLine("remove", line) for line in old_lines[shared:])
    result.extend(DiffLine("add", line) for line in new_lines[shared:])
    return result


def generate_file_diff(old: str | None, new: str | None) -> list[DiffHunk]:
    """One whole-file hunk, or no hunks when either side is absent or empty."""
    if not old or not new:
        return []
    old_lines = old.split("\n")
    new_lines = new.split("\n")
    return [
        DiffHunk(
            old_start=1,
            old_count=len(old_lines),
            new_start=1,
            new_count=len(new_lines),
            lines=_pair_lines(old_lines, new_lines),
        )
    ]


def file_diff(path: str, old: str | None, new: str | None) -> FileDiff:
    if not old:
        kind: Literal["added", "modified", "deleted"] = "added"
    elif not new:
        kind = "deleted"
    else:
        kind = "modified"
    return FileDiff(file=path, kind=kind, before=old, after=new, hunks=generate_file_diff(old, new))


def format_diff(diff: FileDiff) -> str:
    out = [f"--- {diff.file}", f"+++ {diff.file}"]
    for hunk in diff.hunks:
        out.append(f"@@ -{hunk.old_start},{hunk.old_count} +{hunk.new_start},{hunk.new_count} @@")
        out.extend(line.render() for line in hunk.lines)
    return "\n" + "\n".join(out) + "\n"
