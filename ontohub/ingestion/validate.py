"""Validate stage: SHACL conformance checks with pySHACL.

Every document is checked against the bundled baseline shapes, optionally
extended with a shapes file supplied by the operator. Validation runs with
inference disabled, so only statements present in the document are
judged.
"""

from __future__ import annotations

import asyncio
import typing as typ
from importlib import resources

from pyshacl import validate as shacl_validate
from rdflib import Graph, Literal
from rdflib.namespace import SH
from rdflib.util import guess_format

from ontohub.errors import ConfigurationError
from ontohub.ingestion.errors import ConformanceError
from ontohub.ingestion.models import ValidationReport, ValidationViolation

if typ.TYPE_CHECKING:
    from pathlib import Path

    from rdflib.term import Node

    from ontohub.ingestion.models import ParsedDocument

_SHAPES_SETTING = "ONTOHUB_SHAPES_PATH"
_EMPTY_DOCUMENT = ValidationViolation(message="Document contains no statements")


def load_baseline_shapes() -> Graph:
    """Return the bundled baseline shapes graph."""
    shapes = Graph()
    source = resources.files("ontohub.ingestion.shapes").joinpath("baseline.ttl")
    shapes.parse(data=source.read_text(encoding="utf-8"), format="turtle")
    return shapes


def load_shapes(extra_path: Path | None = None) -> Graph:
    """Return the baseline shapes merged with the shapes in *extra_path*.

    Raises
    ------
    ConfigurationError
        If *extra_path* cannot be read or parsed.

    """
    shapes = load_baseline_shapes()
    if extra_path is None:
        return shapes
    try:
        shapes.parse(
            data=extra_path.read_text(encoding="utf-8"),
            format=guess_format(str(extra_path)) or "turtle",
        )
    except OSError as exc:
        raise ConfigurationError.invalid_setting(
            _SHAPES_SETTING, f"cannot be read: {exc.strerror}"
        ) from exc
    except Exception as exc:  # rdflib parsers raise many unrelated types
        raise ConfigurationError.invalid_setting(
            _SHAPES_SETTING, f"is not a valid shapes graph: {exc}"
        ) from exc
    return shapes


def _text(node: Node | None) -> str | None:
    if node is None:
        return None
    return str(node)


def _violations(results: Graph) -> tuple[ValidationViolation, ...]:
    violations = []
    for result in results.subjects(SH.resultSeverity, None):
        message = results.value(result, SH.resultMessage)
        if not isinstance(message, Literal):
            message = "Constraint violated"
        severity = results.value(result, SH.resultSeverity)
        violations.append(
            ValidationViolation(
                message=str(message),
                focus_node=_text(results.value(result, SH.focusNode)),
                path=_text(results.value(result, SH.resultPath)),
                severity=str(severity).rpartition("#")[2] if severity else "Violation",
            )
        )
    violations.sort(key=lambda v: (v.focus_node or "", v.path or "", v.message))
    return tuple(violations)


class ConformanceValidator:
    """Check parsed documents against a SHACL shapes graph.

    Parameters
    ----------
    shapes
        Shapes graph to validate against. Defaults to the bundled baseline.

    """

    def __init__(self, shapes: Graph | None = None) -> None:
        """Bind the validator to a shapes graph."""
        self._shapes = shapes if shapes is not None else load_baseline_shapes()

    @classmethod
    def from_path(cls, extra_path: Path | None) -> ConformanceValidator:
        """Return a validator using the baseline plus *extra_path* shapes."""
        return cls(load_shapes(extra_path))

    def validate_sync(self, document: ParsedDocument) -> ValidationReport:
        """Validate *document* on the calling thread."""
        if len(document.graph) == 0:
            return ValidationReport(conforms=False, violations=(_EMPTY_DOCUMENT,))

        conforms, results, _text_report = shacl_validate(
            document.graph,
            shacl_graph=self._shapes,
            inference="none",
            abort_on_first=False,
            allow_warnings=True,
            advanced=False,
        )
        return ValidationReport(
            conforms=bool(conforms),
            violations=_violations(typ.cast("Graph", results)),
        )

    async def validate(self, document: ParsedDocument) -> ValidationReport:
        """Validate *document* on a worker thread."""
        return await asyncio.to_thread(self.validate_sync, document)

    async def ensure_conforms(self, document: ParsedDocument) -> ValidationReport:
        """Return the report for a conforming *document*.

        Raises
        ------
        ConformanceError
            If the document does not conform; carries the violation
            descriptions in report order.

        """
        report = await self.validate(document)
        if not report.conforms:
            raise ConformanceError(report.messages())
        return report
