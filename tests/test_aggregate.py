from solidscan.aggregate import aggregate, summarize
from solidscan.result import Finding, Target
from solidscan.severity import Severity


def finding(rule_id, unit, severity=Severity.WARNING, message="msg", type_name=None):
    return Finding(rule_id=rule_id, severity=severity, target=Target(unit=unit, type_name=type_name), message=message)


def test_identical_triples_are_deduplicated():
    first = finding("ocp.type-tag-branching", "a.java", type_name="A")
    duplicate = finding("ocp.type-tag-branching", "a.java", type_name="A")
    other_message = finding("ocp.type-tag-branching", "a.java", type_name="A", message="other")

    assert aggregate([first, duplicate, other_message]) == (first, other_message)


def test_sorted_by_severity_then_unit_then_rule():
    findings = [
        finding("b.rule", "b.java", Severity.INFO),
        finding("z.rule", "a.java", Severity.WARNING),
        finding("a.rule", "b.java", Severity.ERROR),
        finding("a.rule", "a.java", Severity.WARNING),
        finding("c.rule", "a.java", Severity.ERROR),
    ]

    ordered = aggregate(findings)

    assert [(f.severity, f.target.unit, f.rule_id) for f in ordered] == [
        (Severity.ERROR, "a.java", "c.rule"),
        (Severity.ERROR, "b.java", "a.rule"),
        (Severity.WARNING, "a.java", "a.rule"),
        (Severity.WARNING, "a.java", "z.rule"),
        (Severity.INFO, "b.java", "b.rule"),
    ]


def test_aggregation_is_idempotent_and_order_independent():
    findings = [
        finding("x.rule", "b.java"),
        finding("x.rule", "a.java", Severity.ERROR),
        finding("x.rule", "b.java"),
        finding("y.rule", "a.java", Severity.INFO),
    ]

    once = aggregate(findings)

    assert aggregate(once) == once
    assert aggregate(reversed(findings)) == once


def test_most_severe_duplicate_wins():
    mild = finding("x.rule", "a.java", Severity.INFO)
    severe = finding("x.rule", "a.java", Severity.ERROR)

    assert aggregate([mild, severe]) == (severe,)


def test_summarize_counts_by_severity():
    summary = summarize([finding("a", "a.java", Severity.ERROR), finding("b", "a.java"), finding("c", "a.java")])

    assert summary.error == 1
    assert summary.warning == 2
    assert summary.info == 0
    assert summary.total == 3
