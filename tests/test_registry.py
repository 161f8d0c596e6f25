import pytest

from solidscan.config import Configuration, RuleSettings
from solidscan.errors import DuplicateRuleError
from solidscan.rules import BaseDetector, Detector, RuleRegistry, default_registry, load_plugins
from solidscan.rules import isp_fat_interface
from solidscan.rules.isp_fat_interface import FatInterfaceDetector

BUILTIN_IDS = [
    "srp.responsibility-fanout",
    "ocp.type-tag-branching",
    "lsp.field-mutation-coupling",
    "isp.fat-interface",
    "dip.concrete-field-construction",
    "resource.unclosed-on-exception-path",
    "error.swallowed-exception",
]


class NamedDetector(BaseDetector):
    def __init__(self, rule_id):
        super().__init__()
        self.rule_id = rule_id

    def evaluate(self, unit):
        return []


def test_default_registry_holds_builtins_in_catalogue_order():
    registry = default_registry()

    assert registry.ids() == BUILTIN_IDS
    assert len(registry) == 7
    assert all(isinstance(detector, Detector) for detector in registry)


def test_default_registry_passes_configured_options():
    config = Configuration(rules={"isp.fat-interface": RuleSettings(options={"max_methods": 4})})

    detector = default_registry(config).get("isp.fat-interface")

    assert isinstance(detector, FatInterfaceDetector)
    assert detector.max_methods == 4


def test_duplicate_registration_fails():
    registry = RuleRegistry([NamedDetector("custom.rule")])

    with pytest.raises(DuplicateRuleError) as excinfo:
        registry.register(NamedDetector("custom.rule"))

    assert excinfo.value.rule_id == "custom.rule"
    assert len(registry) == 1


def test_unregister_missing_is_a_noop():
    registry = RuleRegistry([NamedDetector("a")])

    registry.unregister("missing")
    registry.unregister("a")

    assert "a" not in registry
    assert len(registry) == 0


def test_enabled_filters_and_preserves_order():
    registry = RuleRegistry([NamedDetector("c"), NamedDetector("a"), NamedDetector("b")])
    config = Configuration(rules={"a": RuleSettings(enabled=False)})

    assert [detector.id() for detector in registry.enabled(config)] == ["c", "b"]
    assert [detector.id() for detector in registry.enabled()] == ["c", "a", "b"]


def test_load_plugins_without_entry_points_registers_nothing():
    registry = RuleRegistry()

    assert load_plugins(registry, group="solidscan.tests.no-such-group") == []
    assert len(registry) == 0


class FakeEntryPoint:
    def __init__(self, name, factory):
        self.name = name
        self.value = f"acme_rules:{factory.__name__}"
        self._factory = factory

    def load(self):
        return self._factory


class ThresholdDetector(BaseDetector):
    rule_id = "acme.threshold"

    def evaluate(self, unit):
        return []


def fake_entry_points(*points):
    def entry_points(group):
        assert group == "solidscan.detectors"
        return list(points)

    return entry_points


def test_load_plugins_registers_advertised_detectors(monkeypatch):
    monkeypatch.setattr(
        "solidscan.rules.entry_points",
        fake_entry_points(FakeEntryPoint("acme.threshold", ThresholdDetector)),
    )
    config = Configuration(rules={"acme.threshold": RuleSettings(options={"limit": 3})})
    registry = default_registry(config)

    assert load_plugins(registry, config) == ["acme.threshold"]
    assert registry.ids() == BUILTIN_IDS + ["acme.threshold"]
    assert registry.get("acme.threshold").options == {"limit": 3}


def test_plugin_colliding_with_builtin_fails(monkeypatch):
    class ShadowDetector(BaseDetector):
        rule_id = "isp.fat-interface"

        def evaluate(self, unit):
            return []

    monkeypatch.setattr(
        "solidscan.rules.entry_points",
        fake_entry_points(FakeEntryPoint("isp.fat-interface", ShadowDetector)),
    )
    registry = default_registry()

    with pytest.raises(DuplicateRuleError) as excinfo:
        load_plugins(registry)

    assert excinfo.value.rule_id == "isp.fat-interface"
    assert isinstance(registry.get("isp.fat-interface"), FatInterfaceDetector)


def test_rule_module_factory_reads_its_own_options():
    config = Configuration(rules={"isp.fat-interface": RuleSettings(options={"max_methods": 4})})

    detector = isp_fat_interface.get_rule(config)

    assert detector.max_methods == 4
    assert isp_fat_interface.get_rule().max_methods == 1
