import json

from solidscan import cli

ORDER_SERVICE = """
unit: billing/OrderService.java
types:
  - name: OrderRepository
    kind: interface
    members:
      - {name: save}
  - name: EmailService
    members:
      - {name: send, body: [{call: smtp.deliver}]}
  - name: OrderService
    members:
      - {name: mailer, kind: field, type: EmailService, init: {new: EmailService}}
      - name: OrderService
        constructor: true
        params: ["repository: OrderRepository"]
      - name: placeOrder
        body:
          - branch: order.isValid
          - call: repository.save
          - call: mailer.send
      - name: discountFor
        body:
          - {branch: customer.type, value: SENIOR}
          - {branch: customer.type, value: STUDENT}
      - name: exportReport
        body:
          - acquire: writer
          - call: writer.write
          - release: writer
          - {catch: IOException, body: []}
"""

CLEAN_SERVICE = """
types:
  - name: Clock
    members:
      - name: now
        body:
          - call: system.time
"""


def test_cli_generates_json_report(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    models = tmp_path / "models"
    models.mkdir()
    (models / "order_service.yaml").write_text(ORDER_SERVICE, encoding="utf-8")
    output_path = tmp_path / "out" / "report.json"

    exit_code = cli.main(["--model", str(models), "--out", str(output_path), "--no-plugins"])

    captured = capsys.readouterr()
    assert "Analysis Summary" in captured.out
    assert exit_code == 2
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["summary"] == {"error": 2, "warning": 3, "info": 0}
    assert data["passed"] is False
    assert data["complete"] is True
    assert [finding["severity"] for finding in data["findings"]] == ["error", "error", "warning", "warning", "warning"]
    assert {finding["rule_id"] for finding in data["findings"]} == {
        "resource.unclosed-on-exception-path",
        "error.swallowed-exception",
        "srp.responsibility-fanout",
        "ocp.type-tag-branching",
        "dip.concrete-field-construction",
    }


def test_cli_passes_on_clean_model(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    model = tmp_path / "clock.yaml"
    model.write_text(CLEAN_SERVICE, encoding="utf-8")
    output_path = tmp_path / "clean.json"

    exit_code = cli.main(["-m", str(model), "--out", str(output_path), "--no-plugins"])

    captured = capsys.readouterr()
    assert "Status    : PASS" in captured.out
    assert exit_code == 0
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["findings"] == []


def test_cli_min_severity_and_config(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "order.yaml").write_text(ORDER_SERVICE, encoding="utf-8")
    (tmp_path / "solidscan.yaml").write_text(
        "rules:\n  resource.unclosed-on-exception-path: false\n  error.swallowed-exception: false\n",
        encoding="utf-8",
    )
    output_path = tmp_path / "report.json"

    exit_code = cli.main(["-m", str(tmp_path / "order.yaml"), "--out", str(output_path), "--no-plugins"])

    assert exit_code == 1
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["summary"]["error"] == 0

    exit_code = cli.main(
        ["-m", str(tmp_path / "order.yaml"), "--min-severity", "error", "--out", str(output_path), "--no-plugins"]
    )

    assert exit_code == 0
    assert json.loads(output_path.read_text(encoding="utf-8"))["findings"] == []
    capsys.readouterr()


def test_cli_reports_unparseable_models_as_findings(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "broken.yaml").write_text("types: [", encoding="utf-8")

    exit_code = cli.main(["-m", str(tmp_path), "--format", "text", "--no-plugins"])

    captured = capsys.readouterr()
    assert exit_code == 2
    assert "internal.parse-failure" in captured.out


def test_cli_rejects_invalid_configuration(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    config = tmp_path / "bad.yaml"
    config.write_text("rules:\n  isp.fat-interface: {severity: fatal}\n", encoding="utf-8")

    exit_code = cli.main(["-m", str(tmp_path), "--config", str(config), "--no-plugins"])

    assert exit_code == 3
    assert "severity" in capsys.readouterr().err
