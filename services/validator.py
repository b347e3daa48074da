"""
Validation and auto-repair of generated Remotion component source.

Generated components must be pure functions of the current frame: a single
named export, imports from `react` and `remotion` only, and no state, effect
or timer primitives. Misnamed exports and missing imports are rewritten in
place; everything else is rejected.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List

from config import ALLOWED_IMPORT_SOURCES, REACT_IMPORT, REMOTION_IMPORT

MISSING_EXPORT = "missing_export"
MISSING_IMPORT = "missing_import"
FORBIDDEN_CONSTRUCT = "forbidden_construct"
DISALLOWED_IMPORT = "disallowed_import"

REPAIRABLE_KINDS = {MISSING_EXPORT, MISSING_IMPORT}

FORBIDDEN_PATTERNS = [
    ("useState", re.compile(r"\buseState\b")),
    ("useEffect", re.compile(r"\buseEffect\b")),
    ("useLayoutEffect", re.compile(r"\buseLayoutEffect\b")),
    ("useReducer", re.compile(r"\buseReducer\b")),
    ("useRef", re.compile(r"\buseRef\b")),
    ("setTimeout", re.compile(r"\bsetTimeout\b")),
    ("setInterval", re.compile(r"\bsetInterval\b")),
    ("requestAnimationFrame", re.compile(r"\brequestAnimationFrame\b")),
    ("@keyframes", re.compile(r"@keyframes\b")),
    ("require()", re.compile(r"\brequire\s*\(")),
    ("dynamic import()", re.compile(r"\bimport\s*\(")),
    ("eval()", re.compile(r"\beval\s*\(")),
    ("Function()", re.compile(r"\bFunction\s*\(")),
    ("XMLHttpRequest", re.compile(r"\bXMLHttpRequest\b")),
    ("fetch()", re.compile(r"\bfetch\s*\(")),
    ("__dirname", re.compile(r"\b__dirname\b")),
    ("__filename", re.compile(r"\b__filename\b")),
    ("process.", re.compile(r"\bprocess\.")),
    ("child_process", re.compile(r"\bchild_process\b")),
    ("fs.", re.compile(r"\bfs\.")),
]

IMPORT_RE = re.compile(r"^\s*import\s+(?:[^'\";]*?\s+from\s+)?['\"]([^'\"]+)['\"]", re.MULTILINE)
REACT_IMPORT_RE = re.compile(r"^\s*import\s+(?:\*\s+as\s+)?React\b", re.MULTILINE)
REMOTION_IMPORT_RE = re.compile(r"from\s+['\"]remotion['\"]")

DEFAULT_FUNCTION_RE = re.compile(r"export\s+default\s+(?P<kw>function)(?:\s+(?P<name>[A-Za-z_]\w*))?")
DEFAULT_EXPORT_NAME_RE = re.compile(r"^[ \t]*export\s+default\s+([A-Za-z_]\w*)[ \t]*;?[ \t]*$", re.MULTILINE)
KNOWN_WRONG_EXPORT_RE = re.compile(r"export\s+(?P<kw>const)\s+(?P<name>MyVideo|Video|Scene\d+)\b")
EXPORTED_FC_RE = re.compile(r"export\s+(?P<kw>const)\s+(?P<name>[A-Za-z_]\w*)(?=\s*:\s*React\.FC\b)")
EXPORTED_FUNCTION_RE = re.compile(r"export\s+(?P<kw>function)\s+(?P<name>[A-Z]\w*)\b")
UNEXPORTED_FC_RE = re.compile(r"^(?P<kw>const)\s+(?P<name>[A-Z]\w*)(?=\s*:\s*React\.FC\b)", re.MULTILINE)


@dataclass(frozen=True)
class Violation:
    kind: str
    message: str

    @property
    def repairable(self) -> bool:
        return self.kind in REPAIRABLE_KINDS


@dataclass
class ValidationResult:
    violations: List[Violation] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.violations

    @property
    def fatal(self) -> List[Violation]:
        return [v for v in self.violations if not v.repairable]

    @property
    def messages(self) -> List[str]:
        return [v.message for v in self.violations]


def _has_export(source: str, name: str) -> bool:
    return re.search(rf"export\s+(?:const|function)\s+{re.escape(name)}\b", source) is not None


def validate(source: str, expected_name: str) -> ValidationResult:
    """Check component source against the export, import and purity rules."""
    result = ValidationResult()
    source = source or ""

    if not _has_export(source, expected_name):
        result.violations.append(Violation(
            MISSING_EXPORT,
            f"Missing or incorrect export. Expected: export const {expected_name}",
        ))

    if not REACT_IMPORT_RE.search(source):
        result.violations.append(Violation(MISSING_IMPORT, "Missing React import"))
    if not REMOTION_IMPORT_RE.search(source):
        result.violations.append(Violation(MISSING_IMPORT, "Missing remotion import"))

    for label, pattern in FORBIDDEN_PATTERNS:
        if pattern.search(source):
            result.violations.append(Violation(FORBIDDEN_CONSTRUCT, f"Forbidden pattern found: {label}"))

    for import_source in IMPORT_RE.findall(source):
        if import_source not in ALLOWED_IMPORT_SOURCES:
            result.violations.append(Violation(
                DISALLOWED_IMPORT,
                f"Unauthorized import detected: {import_source}. Only 'react' and 'remotion' are allowed.",
            ))

    return result


class CodeValidator:
    """Applies the deterministic fixes for repairable violations."""

    def __init__(self, raw_code: str, expected_name: str):
        self.code = raw_code or ""
        self.expected_name = expected_name
        self.fixes_applied = []

    def _export_declaration(self, match) -> str:
        """Rewrite the matched declaration as a named export and return the old name."""
        keyword = "function" if match.group("kw") == "function" else "const"
        self.code = f"{self.code[:match.start()]}export {keyword} {self.expected_name}{self.code[match.end():]}"
        return match.group("name")

    def _default_export_target(self):
        default = DEFAULT_EXPORT_NAME_RE.search(self.code)
        if default is None:
            return None
        declaration = re.compile(
            rf"^(?P<kw>const|let|function)\s+(?P<name>{re.escape(default.group(1))})\b", re.MULTILINE
        )
        return declaration.search(self.code)

    def _rename_references(self, old_name: str):
        """Point the remaining uses of a renamed component at the expected name."""
        old = re.escape(old_name)
        # The named export replaces any default or re-export of the old name.
        self.code = re.sub(rf"^[ \t]*export\s+default\s+{old}[ \t]*;?[ \t]*(?:\n|$)", "", self.code, flags=re.MULTILINE)
        self.code = re.sub(
            rf"^[ \t]*export\s*\{{\s*{old}(?:\s+as\s+default)?\s*\}}[ \t]*;?[ \t]*(?:\n|$)", "", self.code, flags=re.MULTILINE
        )
        self.code = re.sub(rf"(</?){old}\b", rf"\g<1>{self.expected_name}", self.code)
        self.code = re.sub(rf"(?<![\w.'\"`]){old}(?=\s*[.(])", self.expected_name, self.code)

    def _fix_export_name(self):
        if _has_export(self.code, self.expected_name):
            return

        for pattern in (DEFAULT_FUNCTION_RE, KNOWN_WRONG_EXPORT_RE, EXPORTED_FC_RE, EXPORTED_FUNCTION_RE):
            match = pattern.search(self.code)
            if match:
                old_name = self._export_declaration(match)
                self.fixes_applied.append(f"Renamed export to {self.expected_name}")
                break
        else:
            match = self._default_export_target()
            if match is None:
                # Only export an unexported component when it is unambiguous.
                candidates = list(UNEXPORTED_FC_RE.finditer(self.code))
                if len(candidates) != 1:
                    return
                match = candidates[0]
            old_name = self._export_declaration(match)
            self.fixes_applied.append(f"Exported component as {self.expected_name}")

        if old_name and old_name != self.expected_name:
            self._rename_references(old_name)

    def _auto_inject_imports(self):
        if not REMOTION_IMPORT_RE.search(self.code):
            self.code = f"{REMOTION_IMPORT}\n{self.code}"
            self.fixes_applied.append("Auto-injected remotion import")

        if not REACT_IMPORT_RE.search(self.code):
            self.code = f"{REACT_IMPORT}\n{self.code}"
            self.fixes_applied.append("Auto-injected React import")

    def run(self) -> str:
        self._fix_export_name()
        self._auto_inject_imports()

        if self.fixes_applied:
            logging.warning(f"🔧 AUTO-FIXES APPLIED: {', '.join(self.fixes_applied)}")

        return self.code


def repair(source: str, expected_name: str) -> str:
    """Rewrite misnamed exports and add missing imports. Never touches forbidden content."""
    return CodeValidator(source, expected_name).run()


def validate_and_repair(source: str, expected_name: str):
    """
    Validate, repair if every violation is repairable, then validate again.

    Returns the (possibly repaired) source and the final validation result.
    """
    result = validate(source, expected_name)
    if result.valid:
        return source, result

    if not result.fatal:
        source = repair(source, expected_name)
        result = validate(source, expected_name)
    return source, result
