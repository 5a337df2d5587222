"""Deterministic per-case scoring of a model output."""

from __future__ import annotations

from warden.evaluation.models import CaseScore, EvalCase


def evaluate_case_result(case: EvalCase, output: str | None) -> CaseScore:
    """Score ``output`` against ``case``.

    All checks always run so that every failure reason is reported. Substring
    checks are case-insensitive; ``min_length`` of ``None`` or ``0`` disables the
    length check.
    """

    text = output or ""
    lowered = text.lower()
    reasons: list[str] = []

    if case.min_length and len(text) < case.min_length:
        reasons.append(f"too short ({len(text)} < {case.min_length})")

    for needle in case.must_include:
        if needle.lower() not in lowered:
            reasons.append(f"missing: {needle}")

    for forbidden in case.must_not_include:
        if forbidden.lower() in lowered:
            reasons.append(f"forbidden: {forbidden}")

    return CaseScore(passed=not reasons, reasons=tuple(reasons))


__all__ = ["evaluate_case_result"]
