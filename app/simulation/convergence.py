"""
simulation/convergence.py

Classifies simulation failures and advisories and turns them into
student-friendly messages.
"""

import re
from dataclasses import dataclass
from enum import Enum


class ErrorCategory(Enum):
    """Categories of simulation problems."""

    STALLED = "stalled"
    CYCLIC_NESTING = "cyclic_nesting"
    PORT_MISMATCH = "port_mismatch"
    UNKNOWN_TYPE = "unknown_type"
    DANGLING_REFERENCE = "dangling_reference"
    CONTENTION = "contention"
    FLOATING = "floating"
    UNKNOWN = "unknown"


# Patterns matched against StructuralError messages (case-insensitive)
_ERROR_PATTERNS: list[tuple[re.Pattern, ErrorCategory]] = [
    (re.compile(r"contains itself", re.IGNORECASE), ErrorCategory.CYCLIC_NESTING),
    (re.compile(r"input port\(s\) and .* output port\(s\)", re.IGNORECASE), ErrorCategory.PORT_MISMATCH),
    (re.compile(r"unknown (component type|custom component definition)", re.IGNORECASE), ErrorCategory.UNKNOWN_TYPE),
    (re.compile(r"missing (wire node|component)|out of range|has no terminal", re.IGNORECASE),
     ErrorCategory.DANGLING_REFERENCE),
]


@dataclass
class ErrorDiagnosis:
    """Structured diagnosis of a simulation problem."""

    category: ErrorCategory
    message: str
    causes: list[str]
    suggestions: list[str]


_DIAGNOSES: dict[ErrorCategory, ErrorDiagnosis] = {
    ErrorCategory.STALLED: ErrorDiagnosis(
        category=ErrorCategory.STALLED,
        message="The circuit never settled. Values shown are from the last simulation pass.",
        causes=[
            "A feedback loop with an odd number of inverters (a ring oscillator)",
            "A battery whose terminals are shorted together",
            "A custom component whose internal circuit oscillates",
        ],
        suggestions=[
            "Look for loops from a gate's output back to its own input",
            "Check that no battery is wired straight across itself",
            "Increase max_passes only if the circuit is very deep",
        ],
    ),
    ErrorCategory.CYCLIC_NESTING: ErrorDiagnosis(
        category=ErrorCategory.CYCLIC_NESTING,
        message="A custom component contains itself.",
        causes=["A custom component was placed inside its own definition, directly or through another one"],
        suggestions=["Remove the nested instance from the custom component's board"],
    ),
    ErrorCategory.PORT_MISMATCH: ErrorDiagnosis(
        category=ErrorCategory.PORT_MISMATCH,
        message="A custom component's ports do not match its internal board.",
        causes=["Input or output ports were added or deleted after the definition was saved"],
        suggestions=["Make the number of InputPort/OutputPort components match the definition's ports"],
    ),
    ErrorCategory.UNKNOWN_TYPE: ErrorDiagnosis(
        category=ErrorCategory.UNKNOWN_TYPE,
        message="The board uses a component type that is not available.",
        causes=[
            "The file was created with a newer version",
            "A custom component definition was deleted",
        ],
        suggestions=["Remove the unknown component or restore its definition"],
    ),
    ErrorCategory.DANGLING_REFERENCE: ErrorDiagnosis(
        category=ErrorCategory.DANGLING_REFERENCE,
        message="The wiring refers to something that no longer exists.",
        causes=[
            "The board file was edited by hand",
            "A terminal index is larger than the component's terminal count",
        ],
        suggestions=["Delete and redraw the affected wires"],
    ),
    ErrorCategory.CONTENTION: ErrorDiagnosis(
        category=ErrorCategory.CONTENTION,
        message="Two outputs drive the same node to different values.",
        causes=[
            "Two gate outputs are wired together",
            "Batteries with different voltages are connected in parallel",
        ],
        suggestions=["Give each node exactly one driving output"],
    ),
    ErrorCategory.FLOATING: ErrorDiagnosis(
        category=ErrorCategory.FLOATING,
        message="Some terminals are not connected to anything.",
        causes=["A wire was not attached to a terminal"],
        suggestions=["Unconnected logic inputs read as LOW; connect them explicitly"],
    ),
    ErrorCategory.UNKNOWN: ErrorDiagnosis(
        category=ErrorCategory.UNKNOWN,
        message="The simulation failed for an unexpected reason.",
        causes=[],
        suggestions=[
            "Verify all components are connected properly",
            "Try a simpler circuit to isolate the problem",
        ],
    ),
}


def classify_error(message: str) -> ErrorCategory:
    """Classify a structural error message, returning the first matching category."""
    for pattern, category in _ERROR_PATTERNS:
        if pattern.search(message or ""):
            return category
    return ErrorCategory.UNKNOWN


def diagnose_error(message: str) -> ErrorDiagnosis:
    """Classify and return a full diagnosis for a structural failure."""
    return _DIAGNOSES[classify_error(message)]


def diagnose_cycle(result) -> list[ErrorDiagnosis]:
    """Diagnoses for the advisories of a finished CycleResult, most severe first."""
    diagnoses = []
    if result.stalled or result.unstable_components:
        diagnoses.append(_DIAGNOSES[ErrorCategory.STALLED])
    if result.contentions:
        diagnoses.append(_DIAGNOSES[ErrorCategory.CONTENTION])
    if result.floating_terminals:
        diagnoses.append(_DIAGNOSES[ErrorCategory.FLOATING])
    return diagnoses


def format_user_message(diagnosis: ErrorDiagnosis, detail: str = "") -> str:
    """Build a student-friendly message string, optionally followed by the raw detail."""
    parts = [diagnosis.message]
    if detail:
        parts.append(f"({detail})")

    if diagnosis.causes:
        parts.append("\nCommon causes:")
        for cause in diagnosis.causes:
            parts.append(f"  - {cause}")

    if diagnosis.suggestions:
        parts.append("\nSuggestions:")
        for suggestion in diagnosis.suggestions:
            parts.append(f"  - {suggestion}")

    return "\n".join(parts)
