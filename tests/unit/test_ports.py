"""Tests for best-effort port opening through firewalld and iptables."""

from __future__ import annotations

from tests.helpers.fakes import FakeRunner, fail, ok
from workshop_pack.core.models import RuleOutcome
from workshop_pack.ops.ports import (
    DEFAULT_PORTS,
    ensure_dynamic_firewall_rule,
    ensure_static_filter_rule,
    find_port_conflicts,
    open_ports,
    warn_port_conflicts,
)

FIREWALLD_ACTIVE = {("systemctl", "is-active", "--quiet", "firewalld"): ok()}


class TestOpenPorts:
    def test_no_mechanism_reports_unavailable(self, log):
        runner = FakeRunner(tools=())

        report = open_ports(DEFAULT_PORTS, runner=runner, log=log)
        assert set(report.dynamic.values()) == {RuleOutcome.UNAVAILABLE}
        assert set(report.static.values()) == {RuleOutcome.UNAVAILABLE}
        assert not report.dynamic_available
        assert not report.static_available
        assert report.reloaded is False
        assert log.stderr == ""

    def test_firewalld_inactive_is_unavailable(self):
        runner = FakeRunner(tools=("systemctl", "firewall-cmd"), results={
            ("systemctl", "is-active"): fail(3),
        })

        report = open_ports((8010,), runner=runner)
        assert report.dynamic == {8010: RuleOutcome.UNAVAILABLE}
        assert not any(call[0] == "firewall-cmd" for call in runner.calls)

    def test_firewalld_applies_and_reloads(self, log):
        runner = FakeRunner(tools=("systemctl", "firewall-cmd"), results={
            **FIREWALLD_ACTIVE,
            ("firewall-cmd", "--zone=public", "--query-port=8010/tcp"): ok("yes"),
            ("firewall-cmd", "--zone=public", "--add-port=8501/tcp"): ok("success"),
            ("firewall-cmd", "--zone=public", "--add-port=8502/tcp"): ok("success"),
            ("firewall-cmd", "--reload"): ok("success"),
            ("firewall-cmd", "--zone=public", "--list-ports"): ok("8010/tcp 8501/tcp 8502/tcp\n"),
        })

        report = open_ports(DEFAULT_PORTS, runner=runner, log=log)
        assert report.dynamic == {
            8010: RuleOutcome.ALREADY_PRESENT,
            8501: RuleOutcome.APPLIED,
            8502: RuleOutcome.APPLIED,
        }
        assert report.reloaded is True
        assert report.open_ports == "8010/tcp 8501/tcp 8502/tcp"
        assert "firewalld ports opened" in log.stdout

    def test_firewalld_all_present_skips_reload(self):
        runner = FakeRunner(tools=("systemctl", "firewall-cmd"), results={
            **FIREWALLD_ACTIVE,
            ("firewall-cmd", "--zone=public"): ok(),
        })

        report = open_ports(DEFAULT_PORTS, runner=runner)
        assert set(report.dynamic.values()) == {RuleOutcome.ALREADY_PRESENT}
        assert ("firewall-cmd", "--reload") not in runner.calls

    def test_both_mechanisms_run(self):
        runner = FakeRunner(tools=("systemctl", "firewall-cmd", "iptables"), results={
            **FIREWALLD_ACTIVE,
            ("firewall-cmd", "--zone=public"): ok(),
            ("iptables", "-C"): ok(),
        })

        report = open_ports(DEFAULT_PORTS, runner=runner)
        assert report.dynamic_available
        assert report.static_available
        assert set(report.static.values()) == {RuleOutcome.ALREADY_PRESENT}

    def test_failures_are_reported_not_raised(self, log):
        runner = FakeRunner(tools=("iptables",), results={("iptables", "-C"): fail()})

        report = open_ports((8010,), runner=runner, log=log)
        assert report.static == {8010: RuleOutcome.FAILED}
        assert "could not add an ACCEPT rule for 8010/tcp" in log.stderr


class TestStaticFilterRule:
    def test_inserts_when_absent(self):
        runner = FakeRunner(tools=("iptables",), results={
            ("iptables", "-C"): fail(),
            ("iptables", "-I"): ok(),
        })

        assert ensure_static_filter_rule(8501, runner) is RuleOutcome.APPLIED
        assert runner.calls[-1] == (
            "iptables", "-I", "INPUT", "-p", "tcp", "--dport", "8501", "-j", "ACCEPT",
        )

    def test_existing_rule_not_duplicated(self):
        runner = FakeRunner(tools=("iptables",), results={("iptables", "-C"): ok()})

        assert ensure_static_filter_rule(8501, runner) is RuleOutcome.ALREADY_PRESENT
        assert not any(call[1] == "-I" for call in runner.calls)

    def test_missing_tool(self):
        assert ensure_static_filter_rule(8501, FakeRunner()) is RuleOutcome.UNAVAILABLE


class TestDynamicFirewallRule:
    def test_add_failure(self):
        runner = FakeRunner(tools=("systemctl", "firewall-cmd"), results={
            **FIREWALLD_ACTIVE,
            ("firewall-cmd", "--zone=public", "--query-port=8010/tcp"): fail(),
            ("firewall-cmd", "--zone=public", "--add-port=8010/tcp"): fail(),
        })

        assert ensure_dynamic_firewall_rule(8010, runner) is RuleOutcome.FAILED

    def test_without_systemctl(self):
        runner = FakeRunner(tools=("firewall-cmd",))
        assert ensure_dynamic_firewall_rule(8010, runner) is RuleOutcome.UNAVAILABLE


class TestPortConflicts:
    def test_foreign_instances_reported(self, tmp_path, log):
        own = f"101 python -m streamlit run {tmp_path}/recipe-streamlit-app/app.py"
        other = "202 python -m streamlit run /home/old/recipe-streamlit-app/app.py"
        runner = FakeRunner(tools=("pgrep",), results={("pgrep",): ok(f"{own}\n{other}\n")})

        found = warn_port_conflicts(tmp_path, runner=runner, log=log)
        assert found == [other]
        assert "Other Streamlit instances detected" in log.stderr
        assert "/home/old/" in log.stderr

    def test_no_processes(self, tmp_path):
        runner = FakeRunner(tools=("pgrep",), results={("pgrep",): fail()})
        assert find_port_conflicts(tmp_path, runner=runner) == []

    def test_pgrep_missing(self, tmp_path, log):
        assert warn_port_conflicts(tmp_path, runner=FakeRunner(), log=log) == []
        assert log.stderr == ""
