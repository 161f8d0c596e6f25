import pytest

from solidscan.config import Configuration, RuleSettings, Suppression, config_from_dict, load_config
from solidscan.errors import ConfigError
from solidscan.result import Finding, Target
from solidscan.severity import Severity


def make_finding(unit="legacy/Old.java", rule_id="ocp.type-tag-branching"):
    return Finding(rule_id=rule_id, severity=Severity.WARNING, target=Target(unit=unit), message="m")


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "solidscan.yaml"
    path.write_text(
        """
default_enabled: true
rules:
  isp.fat-interface:
    severity: WARNING
    options: {max_methods: 3}
  ocp.type-tag-branching: false
suppressions:
  - legacy/*
  - unit: billing/*
    rule: dip.concrete-field-construction
""",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.allows("isp.fat-interface")
    assert not config.allows("ocp.type-tag-branching")
    assert config.allows("srp.responsibility-fanout")
    assert config.severity_for("isp.fat-interface", Severity.INFO) == Severity.WARNING
    assert config.severity_for("srp.responsibility-fanout", Severity.WARNING) == Severity.WARNING
    assert config.options_for("isp.fat-interface") == {"max_methods": 3}
    assert config.is_suppressed(make_finding())
    assert config.is_suppressed(make_finding("billing/Order.java", "dip.concrete-field-construction"))
    assert not config.is_suppressed(make_finding("billing/Order.java", "srp.responsibility-fanout"))


def test_default_enabled_false_acts_as_allow_list():
    config = Configuration(rules={"error.swallowed-exception": RuleSettings()}, default_enabled=False)

    assert config.allows("error.swallowed-exception")
    assert not config.allows("isp.fat-interface")


def test_missing_default_file_gives_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert load_config() == Configuration()


def test_missing_explicit_file_is_an_error(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "absent.yaml")


@pytest.mark.parametrize(
    "data",
    [
        {"rules": {"isp.fat-interface": {"severity": "critical"}}},
        {"rules": {"isp.fat-interface": "yes"}},
        {"rules": []},
        {"suppressions": [{"rule": "x"}]},
        {"unknown": 1},
    ],
)
def test_invalid_configuration_is_rejected(data):
    with pytest.raises(ConfigError):
        config_from_dict(data)


def test_suppression_without_rule_matches_every_rule():
    suppression = Suppression(unit="gen/*")

    assert suppression.matches(make_finding("gen/Api.java", "anything"))
    assert not suppression.matches(make_finding("src/Api.java", "anything"))
