from solidscan.loader import build_unit
from solidscan.rules.isp_fat_interface import FatInterfaceDetector
from solidscan.severity import Severity

WORKER = {
    "name": "Worker",
    "kind": "interface",
    "members": [{"name": "work"}, {"name": "eat"}],
}


def run_rule(*types, options=None):
    unit = build_unit({"types": list(types)}, "factory/Worker.java")
    return FatInterfaceDetector(options).evaluate(unit)


def test_empty_implementation_reports_the_interface():
    robot = {
        "name": "Robot",
        "implements": ["Worker"],
        "members": [
            {"name": "work", "body": [{"call": "motor.run"}]},
            {"name": "eat", "body": []},
        ],
    }

    findings = run_rule(WORKER, robot)

    assert len(findings) == 1
    assert findings[0].rule_id == "isp.fat-interface"
    assert findings[0].severity == Severity.INFO
    assert findings[0].target.type_name == "Worker"
    assert findings[0].target.member_name is None
    assert "Robot.eat" in findings[0].message


def test_unsupported_operation_counts_as_noop():
    robot = {
        "name": "Robot",
        "implements": ["Worker"],
        "members": [
            {"name": "work", "body": [{"call": "motor.run"}]},
            {"name": "eat", "body": [{"throw": "UnsupportedOperationException"}]},
        ],
    }

    assert len(run_rule(WORKER, robot)) == 1


def test_full_implementation_is_fine():
    human = {
        "name": "Human",
        "implements": ["Worker"],
        "members": [
            {"name": "work", "body": [{"call": "desk.sit"}]},
            {"name": "eat", "body": [{"call": "lunch.open"}]},
        ],
    }

    assert run_rule(WORKER, human) == []


def test_threshold_allows_larger_interfaces():
    robot = {"name": "Robot", "implements": ["Worker"], "members": [{"name": "eat"}]}

    assert len(run_rule(WORKER, robot)) == 1
    assert run_rule(WORKER, robot, options={"max_methods": 2}) == []
