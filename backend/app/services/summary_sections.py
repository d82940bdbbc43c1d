"""
Markdown section helpers for interaction summaries.

AI summaries are stored as ``## Heading`` blocks, one per section, separated
by a blank line. Standard sections are bullet lists except *Current Capacity*,
which is a paragraph. Custom sections are free-form headings the consultant
asks for (or types into an edited summary).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from app.utils.helpers import to_camel_case


@dataclass(frozen=True)
class StandardSection:
    key: str            # stored flag / label key
    label: str          # default heading
    ai_key: str         # field name in the model's JSON response
    shape: str          # "list" or "text"
    instruction: str    # wording used in "Do not include ..." lines
    pattern: "re.Pattern[str]"


STANDARD_SECTIONS: Tuple[StandardSection, ...] = (
    StandardSection(
        "main_issues", "Main Issues", "mainIssues", "list",
        "main issues", re.compile(r"main\s+issues?", re.I),
    ),
    StandardSection(
        "current_capacity", "Current Capacity & Duties", "currentCapacity", "text",
        "current capacity", re.compile(r"current\s+capacity", re.I),
    ),
    StandardSection(
        "treatment_and_medical", "Treatment & Medical Input", "treatmentAndMedical", "list",
        "treatment and medical", re.compile(r"treatment|medical", re.I),
    ),
    StandardSection(
        "barriers_to_rtw", "Barriers to RTW", "barriersToRTW", "list",
        "barriers to RTW", re.compile(r"barriers?.*rtw|rtw.*barriers?", re.I),
    ),
    StandardSection(
        "agreed_actions", "Agreed Actions", "agreedActions", "list",
        "agreed actions", re.compile(r"agreed\s+actions?", re.I),
    ),
)

SECTION_KEYS = tuple(s.key for s in STANDARD_SECTIONS)
DEFAULT_LABELS = {s.key: s.label for s in STANDARD_SECTIONS}
PLACEHOLDER_ITEM = "Information to be extracted"

_HEADING_RE = re.compile(r"^##\s+(.+)$", re.M)
_BULLET_RE = re.compile(r"^-\s+")


# ============================================================================
# Building
# ============================================================================

def resolve_sections(flags: Optional[Mapping[str, Optional[bool]]] = None) -> Dict[str, bool]:
    """Fill in missing section flags; every section is on unless switched off."""
    flags = flags or {}
    return {key: True if flags.get(key) is None else bool(flags.get(key)) for key in SECTION_KEYS}


def build_instructions(
    sections: Mapping[str, bool],
    custom_sections: Optional[Sequence[str]] = None,
    extra: Optional[str] = None,
    from_edited_summary: bool = False,
    preserve_custom: bool = False,
) -> Optional[str]:
    """
    Extra instructions appended to the summarisation prompt.

    Returns ``None`` when there is nothing to add so the prompt stays unchanged.
    """
    lines: List[str] = []
    for section in STANDARD_SECTIONS:
        if not sections.get(section.key, True):
            lines.append(f"Do not include {section.instruction} section")

    custom_sections = list(custom_sections or [])
    if custom_sections:
        joined = ", ".join(custom_sections)
        lines.append(
            f"Additionally, include these custom sections: {joined}. For each custom section, "
            "extract relevant information from the content and format as a list of bullet points."
        )
        if preserve_custom:
            lines.append(
                "IMPORTANT: The following custom sections were present in the edited summary and "
                f"must be included in the regenerated summary: {joined}. "
                "Extract information for these sections from the provided content."
            )

    if extra and extra.strip():
        lines.append(extra.strip())

    if from_edited_summary:
        lines.append(
            "Note: The provided content is an edited summary. "
            "Extract and reorganize the information from this summary text."
        )

    return "\n".join(lines) if lines else None


def _clean_items(value) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(str(v).strip() for v in value if v is not None).strip()
    return str(value).strip()


def _bullets(items: Sequence[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def summary_blocks(
    summary: Mapping,
    sections: Mapping[str, bool],
    labels: Optional[Mapping[str, str]] = None,
    custom_sections: Optional[Sequence[str]] = None,
    strict: bool = False,
    custom_bodies: Optional[Mapping[str, str]] = None,
) -> List[str]:
    """
    Render the model's JSON summary into ``## Label`` blocks.

    ``strict`` drops blank items and omits sections that end up empty (used
    when regenerating). ``custom_bodies`` maps a custom heading to body text
    that is kept verbatim instead of the model's version.
    """
    labels = labels or {}
    custom_bodies = custom_bodies or {}
    blocks: List[str] = []

    for section in STANDARD_SECTIONS:
        if not sections.get(section.key, True):
            continue
        label = labels.get(section.key) or section.label
        value = summary.get(section.ai_key)

        if section.shape == "text":
            text = _as_text(value)
            if strict and not text:
                continue
            blocks.append(f"## {label}\n{text}")
            continue

        items = _clean_items(value)
        if strict and not items:
            continue
        blocks.append(f"## {label}\n{_bullets(items)}")

    for label in custom_sections or []:
        preserved = custom_bodies.get(label)
        if preserved:
            blocks.append(f"## {label}\n{preserved}")
            continue

        value = summary.get(to_camel_case(label))
        if isinstance(value, list) and _clean_items(value):
            blocks.append(f"## {label}\n{_bullets(_clean_items(value))}")
        elif isinstance(value, str) and value.strip():
            blocks.append(f"## {label}\n{value.strip()}")
        elif not strict:
            blocks.append(f"## {label}\n- {PLACEHOLDER_ITEM}")

    return blocks


def format_summary(
    summary: Mapping,
    sections: Mapping[str, bool],
    labels: Optional[Mapping[str, str]] = None,
    custom_sections: Optional[Sequence[str]] = None,
    strict: bool = False,
) -> str:
    blocks = summary_blocks(summary, sections, labels, custom_sections, strict=strict)
    return "\n\n".join(blocks).strip()


# ============================================================================
# Reading edited summaries
# ============================================================================

def detect_headings(markdown: str) -> List[str]:
    """All ``## Heading`` titles in document order."""
    return [m.group(1).strip() for m in _HEADING_RE.finditer(markdown or "")]


@dataclass
class HeadingClassification:
    sections: Dict[str, bool]
    labels: Dict[str, str]
    custom_sections: List[str]


def classify_headings(headings: Sequence[str]) -> HeadingClassification:
    """
    Map headings onto the standard sections.

    A standard section is on when any heading matches its pattern, and the
    first matching heading becomes its label. Headings matching no pattern are
    custom sections.
    """
    flags: Dict[str, bool] = {}
    labels: Dict[str, str] = {}
    for section in STANDARD_SECTIONS:
        matches = [h for h in headings if section.pattern.search(h)]
        flags[section.key] = bool(matches)
        if matches:
            labels[section.key] = matches[0]

    custom = [
        h for h in headings
        if not any(section.pattern.search(h) for section in STANDARD_SECTIONS)
    ]
    return HeadingClassification(sections=flags, labels=labels, custom_sections=custom)


def strip_markdown(markdown: str) -> str:
    """Plain text of a summary: headings and bullet markers removed."""
    text = _HEADING_RE.sub("", markdown or "")
    text = re.sub(r"^-\s+", "", text, flags=re.M)
    text = re.sub(r"\n\n+", "\n", text)
    return text.strip()


def extract_section(markdown: str, label: str) -> Optional[str]:
    """Body under the heading matching ``label`` (case-insensitive), or None."""
    wanted = label.strip().lower()
    for chunk in re.split(r"^##\s+", markdown or "", flags=re.M)[1:]:
        chunk = chunk.strip()
        if not chunk:
            continue
        title, _, body = chunk.partition("\n")
        if title.strip().lower() == wanted:
            body = body.strip()
            return body or None
    return None


def _block_heading(block: str) -> Optional[str]:
    match = _HEADING_RE.search(block)
    return match.group(1).strip() if match else None


def reorder_sections(blocks: Sequence[str], order: Sequence[str]) -> List[str]:
    """
    Put rendered blocks in the order their headings appear in ``order``.

    Blocks whose heading isn't listed keep their relative order at the end.
    """
    remaining = list(blocks)
    ordered: List[str] = []
    for title in order:
        for block in remaining:
            if _block_heading(block) == title:
                ordered.append(block)
                remaining.remove(block)
                break
    ordered.extend(remaining)
    return ordered or list(blocks)


# ============================================================================
# Structured editing
# ============================================================================

@dataclass
class SummarySection:
    heading: Optional[str]
    kind: str = "text"  # "list" | "text"
    items: List[str] = field(default_factory=list)
    text: str = ""

    @property
    def body(self) -> str:
        if self.kind == "list":
            return _bullets(self.items)
        return self.text


def _section_from_body(heading: Optional[str], body: Union[str, Sequence[str]]) -> SummarySection:
    if not isinstance(body, str):
        return SummarySection(heading=heading, kind="list", items=_clean_items(list(body)))

    lines = [line.rstrip() for line in body.strip("\n").split("\n")]
    content = [line for line in lines if line.strip()]
    if content and all(_BULLET_RE.match(line) for line in content):
        items = [_BULLET_RE.sub("", line, count=1).strip() for line in content]
        return SummarySection(heading=heading, kind="list", items=items)
    return SummarySection(heading=heading, kind="text", text="\n".join(lines).strip())


def parse_summary(markdown: str) -> List[SummarySection]:
    """
    Split a summary into sections.

    A body is a ``list`` when every non-blank line is a ``- `` bullet, else
    ``text``. Anything before the first heading becomes a heading-less
    preamble section.
    """
    sections: List[SummarySection] = []
    heading: Optional[str] = None
    body: List[str] = []

    def flush():
        if heading is None and not "".join(body).strip():
            return
        sections.append(_section_from_body(heading, "\n".join(body)))

    for line in (markdown or "").split("\n"):
        match = _HEADING_RE.match(line)
        if match:
            flush()
            heading = match.group(1).strip()
            body = []
        else:
            body.append(line)
    flush()
    return sections


def render_sections(sections: Sequence[SummarySection]) -> str:
    blocks = []
    for section in sections:
        body = section.body
        if section.heading is None:
            blocks.append(body)
        elif body:
            blocks.append(f"## {section.heading}\n{body}")
        else:
            blocks.append(f"## {section.heading}")
    return "\n\n".join(blocks).strip()


def _same_heading(a: Optional[str], b: str) -> bool:
    return a is not None and a.strip().lower() == b.strip().lower()


def replace_section(markdown: str, heading: str, body: Union[str, Sequence[str]]) -> str:
    """Replace one section's body, appending the section when it's missing."""
    sections = parse_summary(markdown)
    replacement = _section_from_body(heading, body)
    for index, section in enumerate(sections):
        if _same_heading(section.heading, heading):
            replacement.heading = section.heading
            sections[index] = replacement
            break
    else:
        sections.append(replacement)
    return render_sections(sections)


def remove_section(markdown: str, heading: str) -> str:
    sections = [s for s in parse_summary(markdown) if not _same_heading(s.heading, heading)]
    return render_sections(sections)
