"""Tests for the discovery ranker."""

import pytest
from subjectlens.discovery import ranker
from subjectlens.discovery import (
    DiscoveryInput,
    DiscoveryRule,
    DiscoverySuggestion,
    DsarType,
    SystemInfo,
    run_discovery,
    score_rule,
)


def make_rule(**overrides) -> DiscoveryRule:
    values = {
        "id": "rule-1",
        "system_id": "sys-1",
        "dsar_types": frozenset({"ACCESS"}),
        "data_subject_types": frozenset(),
        "identifier_types": frozenset(),
        "weight": 50,
        "active": True,
    }
    values.update(overrides)
    return DiscoveryRule(**values)


def make_system(**overrides) -> SystemInfo:
    values = {
        "id": "sys-1",
        "name": "CRM System",
        "in_scope_for_dsar": True,
        "confidence_score": 80,
        "identifier_types": frozenset({"email", "customerId"}),
    }
    values.update(overrides)
    return SystemInfo(**values)


def access(*identifier_types: str, subject_type: str | None = None) -> DiscoveryInput:
    return DiscoveryInput(
        dsar_type="ACCESS",
        data_subject_type=subject_type,
        identifier_types=tuple(identifier_types),
    )


class TestDiscoveryModels:
    """Tests for discovery model helpers."""

    def test_dsar_types(self):
        """Test all request types are defined."""
        assert [t.value for t in DsarType] == [
            "ACCESS",
            "ERASURE",
            "RECTIFICATION",
            "RESTRICTION",
            "PORTABILITY",
            "OBJECTION",
        ]

    def test_rule_matches_enum_or_string(self):
        """Test request types compare by value."""
        rule = make_rule(dsar_types=frozenset({DsarType.ERASURE}))
        assert rule.matches_dsar_type("ERASURE") is True
        assert rule.matches_dsar_type(DsarType.ERASURE) is True
        assert rule.matches_dsar_type("ACCESS") is False

    def test_rule_from_dict(self):
        """Test parsing a catalogue rule."""
        rule = DiscoveryRule.from_dict(
            {
                "id": "r1",
                "systemId": "sys-1",
                "dsarTypes": ["ACCESS", "ERASURE"],
                "weight": 40,
                "conditions": {"mailbox": "primary"},
            }
        )
        assert rule.dsar_types == frozenset({"ACCESS", "ERASURE"})
        assert rule.data_subject_types == frozenset()
        assert rule.active is True
        assert rule.conditions == {"mailbox": "primary"}

    def test_suggestion_to_dict(self):
        """Test suggestion serialization."""
        suggestion = DiscoverySuggestion(
            system_id="sys-1", system_name="CRM", score=70, reasons=("a", "b")
        )
        assert suggestion.to_dict() == {
            "systemId": "sys-1",
            "systemName": "CRM",
            "score": 70,
            "reasons": ["a", "b"],
        }


class TestScoreRule:
    """Tests for single rule scoring."""

    def test_reasons_per_factor(self):
        """Test each contributing factor adds exactly one reason."""
        score, reasons = score_rule(
            make_rule(weight=50),
            make_system(in_scope_for_dsar=False),
            access("email", "customerId"),
        )
        assert score == 0
        assert reasons == [
            'Rule "rule-1" matched (weight: 50)',
            "Identifier match: email, customerId (+30)",
            "System confidence: 80% (+8)",
            "System marked out of scope for DSAR (-100)",
        ]

    def test_confidence_rounds_half_up(self):
        """Test a .5 confidence boost rounds up."""
        score, reasons = score_rule(
            make_rule(weight=10), make_system(confidence_score=45), access()
        )
        assert score == 15
        assert reasons[-1] == "System confidence: 45% (+5)"

    def test_no_confidence_reason_when_zero(self):
        """Test small confidence scores add no reason."""
        _, reasons = score_rule(make_rule(), make_system(confidence_score=4), access())
        assert reasons == ['Rule "rule-1" matched (weight: 50)']


class TestRunDiscovery:
    """Tests for run_discovery."""

    def test_no_rules(self):
        """Test empty catalogue yields no suggestions."""
        assert run_discovery(access("email"), [], {}) == []

    def test_simple_match(self):
        """Test a rule matching the request type."""
        result = run_discovery(access(), [make_rule()], {"sys-1": make_system()})
        assert len(result) == 1
        assert result[0].system_id == "sys-1"
        assert result[0].system_name == "CRM System"

    def test_different_dsar_type(self):
        """Test a rule for another request type is skipped."""
        discovery_input = DiscoveryInput(dsar_type="ERASURE")
        result = run_discovery(discovery_input, [make_rule()], {"sys-1": make_system()})
        assert result == []

    def test_inactive_rule_skipped(self):
        """Test inactive rules never contribute."""
        result = run_discovery(access(), [make_rule(active=False)], {"sys-1": make_system()})
        assert result == []

    def test_subject_type_mismatch(self):
        """Test a rule restricted to other subject types is skipped."""
        rule = make_rule(data_subject_types=frozenset({"customer"}))
        result = run_discovery(access(subject_type="employee"), [rule], {"sys-1": make_system()})
        assert result == []

    def test_subject_type_match(self):
        """Test a rule listing the subject type matches."""
        rule = make_rule(data_subject_types=frozenset({"customer", "visitor"}))
        result = run_discovery(access(subject_type="customer"), [rule], {"sys-1": make_system()})
        assert len(result) == 1

    def test_unrestricted_subject_type(self):
        """Test a rule without subject types matches any subject."""
        result = run_discovery(
            access(subject_type="employee"), [make_rule()], {"sys-1": make_system()}
        )
        assert len(result) == 1

    def test_request_without_subject_type(self):
        """Test restricted rules still match when the request has no subject type."""
        rule = make_rule(data_subject_types=frozenset({"customer"}))
        result = run_discovery(access(), [rule], {"sys-1": make_system()})
        assert len(result) == 1

    def test_identifier_boost_capped(self):
        """Test +15 per matching identifier type, capped at +30."""
        system = make_system(identifier_types=frozenset({"email", "customerId", "phone"}))
        result = run_discovery(
            access("email", "customerId", "phone"), [make_rule(weight=50)], {"sys-1": system}
        )
        # 50 + 30 (capped) + 8
        assert result[0].score == 88

    def test_identifier_boost_from_rule(self):
        """Test identifier types listed on the rule also count."""
        rule = make_rule(identifier_types=frozenset({"ssn", "email"}))
        system = make_system(identifier_types=frozenset())
        result = run_discovery(access("ssn"), [rule], {"sys-1": system})
        # 50 + 15 + 8
        assert result[0].score == 73

    def test_confidence_boost(self):
        """Test confidence boost is a tenth of the system score."""
        result = run_discovery(
            access(), [make_rule(weight=50)], {"sys-1": make_system(confidence_score=100)}
        )
        assert result[0].score == 60

    def test_zero_confidence(self):
        """Test a system with zero confidence gets no boost."""
        result = run_discovery(
            access(), [make_rule(weight=50)], {"sys-1": make_system(confidence_score=0)}
        )
        assert result[0].score == 50
        assert len(result[0].reasons) == 1

    def test_out_of_scope_excluded(self):
        """Test the typical out-of-scope system is excluded."""
        system = make_system(in_scope_for_dsar=False)
        result = run_discovery(
            access("email", "customerId"), [make_rule(weight=50)], {"sys-1": system}
        )
        # 50 + 30 + 8 - 100 = -12 -> 0 -> excluded
        assert result == []

    def test_out_of_scope_penalty_is_additive(self):
        """Test a heavily boosted out-of-scope system can still score."""
        system = make_system(
            in_scope_for_dsar=False,
            confidence_score=100,
            identifier_types=frozenset({"email", "phone"}),
        )
        result = run_discovery(access("email", "phone"), [make_rule(weight=100)], {"sys-1": system})
        # 100 + 30 + 10 - 100 = 40
        assert result[0].score == 40
        assert result[0].reasons[-1] == "System marked out of scope for DSAR (-100)"

    def test_score_clamped_to_100(self):
        """Test scores above 100 are clamped."""
        system = make_system(confidence_score=100, identifier_types=frozenset({"email", "phone"}))
        result = run_discovery(access("email", "phone"), [make_rule(weight=90)], {"sys-1": system})
        assert result[0].score == 100

    def test_ranked_descending(self):
        """Test systems are ranked by score."""
        rules = [
            make_rule(id="r1", system_id="sys-1", weight=80),
            make_rule(id="r2", system_id="sys-2", weight=30),
            make_rule(id="r3", system_id="sys-3", weight=60),
        ]
        systems = {
            "sys-1": make_system(id="sys-1", name="CRM", identifier_types=frozenset({"email"})),
            "sys-2": make_system(
                id="sys-2", name="HR", confidence_score=60, identifier_types=frozenset({"email"})
            ),
            "sys-3": make_system(
                id="sys-3", name="Analytics", confidence_score=70, identifier_types=frozenset()
            ),
        }
        result = run_discovery(access("email"), rules, systems)
        # sys-1: 100 (clamped), sys-3: 67, sys-2: 51
        assert [s.system_id for s in result] == ["sys-1", "sys-3", "sys-2"]
        assert [s.score for s in result] == [100, 67, 51]

    def test_best_rule_per_system(self):
        """Test rules for the same system compete rather than add up."""
        rules = [
            make_rule(id="r1", weight=30),
            make_rule(id="r2", weight=70),
            make_rule(id="r3", weight=40),
        ]
        result = run_discovery(access(), rules, {"sys-1": make_system()})
        assert len(result) == 1
        assert result[0].score == 78
        assert result[0].reasons[0] == 'Rule "r2" matched (weight: 70)'

    def test_equal_rule_keeps_first(self):
        """Test an equally scoring later rule does not replace the first."""
        rules = [make_rule(id="first"), make_rule(id="second")]
        result = run_discovery(access(), rules, {"sys-1": make_system()})
        assert result[0].reasons[0].startswith('Rule "first"')

    def test_unknown_system_skipped(self):
        """Test rules pointing at uncatalogued systems are skipped."""
        result = run_discovery(
            access(), [make_rule(system_id="nonexistent")], {"sys-1": make_system()}
        )
        assert result == []

    def test_ties_keep_processing_order(self):
        """Test equal scores keep the order systems were first matched."""
        rules = [
            make_rule(id="r-b", system_id="sys-b"),
            make_rule(id="r-a", system_id="sys-a"),
        ]
        systems = {
            "sys-a": make_system(id="sys-a", name="A"),
            "sys-b": make_system(id="sys-b", name="B"),
        }
        result = run_discovery(access(), rules, systems)
        assert [s.system_id for s in result] == ["sys-b", "sys-a"]

    def test_unnamed_system(self):
        """Test a system without a name is reported as Unknown."""
        result = run_discovery(access(), [make_rule()], {"sys-1": make_system(name="")})
        assert result[0].system_name == "Unknown"

    def test_reasons_included(self):
        """Test reasons explain the score."""
        system = make_system(identifier_types=frozenset({"email"}))
        result = run_discovery(access("email"), [make_rule(weight=50)], {"sys-1": system})
        reasons = result[0].reasons
        assert any("weight: 50" in r for r in reasons)
        assert any("Identifier match" in r for r in reasons)
        assert any("confidence" in r for r in reasons)

    @pytest.mark.parametrize("weight", [1, 50, 100])
    def test_scores_within_bounds(self, weight):
        """Test every suggestion score is within 1-100."""
        system = make_system(identifier_types=frozenset({"email", "phone", "upn"}))
        result = run_discovery(
            access("email", "phone", "upn"), [make_rule(weight=weight)], {"sys-1": system}
        )
        assert all(0 < s.score <= 100 for s in result)

    def test_completion_log_uses_plain_dsar_type(self, monkeypatch):
        """Test an enum request type is logged as its plain value."""
        events = []

        class RecordingLogger:
            def debug(self, event, **fields):
                events.append((event, fields))

        monkeypatch.setattr(ranker, "logger", RecordingLogger())
        discovery_input = DiscoveryInput(dsar_type=DsarType.ACCESS)

        run_discovery(discovery_input, [make_rule()], {"sys-1": make_system()})

        completed = [fields for event, fields in events if event == "discovery_completed"]
        assert completed[0]["dsar_type"] == "ACCESS"
