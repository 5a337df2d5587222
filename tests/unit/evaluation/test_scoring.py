from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from warden.evaluation import EvalCase, default_eval_cases, evaluate_case_result


def _case(**overrides: object) -> EvalCase:
    fields: dict[str, object] = {"id": "probe", "prompt": "say something"}
    fields.update(overrides)
    return EvalCase(**fields)  # type: ignore[arg-type]


def test_passing_output_has_no_reasons() -> None:
    case = _case(must_include=("budget", "routing"), min_length=10)

    score = evaluate_case_result(case, "A Budget-aware ROUTING policy.")

    assert score.passed is True
    assert score.reasons == ()


def test_all_failures_are_reported_in_check_order() -> None:
    case = _case(
        must_include=("safe", "avoid"),
        must_not_include=("rm -rf /",),
        min_length=90,
    )

    score = evaluate_case_result(case, "just RM -RF / it")

    assert score.passed is False
    assert score.reasons == (
        "too short (16 < 90)",
        "missing: safe",
        "missing: avoid",
        "forbidden: rm -rf /",
    )


def test_none_output_is_scored_as_empty_string() -> None:
    score = evaluate_case_result(_case(min_length=5), None)

    assert score.reasons == ("too short (0 < 5)",)


def test_zero_min_length_disables_length_check() -> None:
    assert evaluate_case_result(_case(min_length=0), "").passed is True
    assert evaluate_case_result(_case(), "").passed is True


def test_default_catalog_fails_on_empty_output() -> None:
    for case in default_eval_cases():
        score = evaluate_case_result(case, "")
        assert score.passed is False
        assert score.reasons[0].startswith("too short (0 < ")


@settings(max_examples=80, deadline=None)
@given(
    output=st.text(max_size=60),
    needles=st.lists(st.text(alphabet="abcXYZ", min_size=1, max_size=3), max_size=3),
    min_length=st.one_of(st.none(), st.integers(min_value=0, max_value=40)),
)
def test_passed_iff_no_reasons(output: str, needles: list[str], min_length: int | None) -> None:
    case = _case(must_include=tuple(needles), min_length=min_length)

    score = evaluate_case_result(case, output)

    assert score.passed is (len(score.reasons) == 0)
    missing = [needle for needle in needles if needle.lower() not in output.lower()]
    assert [reason for reason in score.reasons if reason.startswith("missing: ")] == [
        f"missing: {needle}" for needle in missing
    ]
