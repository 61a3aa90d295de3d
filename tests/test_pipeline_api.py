"""
Integration tests for the scoring pipeline, event log and API.

Tests:
- End-to-end report assembly
- Event IDs written for scoring, policy analysis and startup
- Degraded network health when snapshots are missing
- FastAPI endpoints
"""
import asyncio

import pytest
from fastapi.testclient import TestClient

from fedtrust.adapters.snapshot_store import SnapshotStore
from fedtrust.api import create_app
from fedtrust.detection.network_health import DEGRADED_FLAG
from fedtrust.logging.event_logger import EventLogger
from fedtrust.pipeline import ScoringPipeline
from fedtrust.schemas import BlocklistMatch, EventLevel, InstanceFacts, InstanceMetadata, ModerationRule


RULES = [
    ModerationRule(id="1", text="Harassment, bullying and dogpiling are not allowed."),
    ModerationRule(id="2", text="No hate speech, racism, sexism, homophobia or transphobia."),
    ModerationRule(id="3", text="Do not share personal information (doxxing)."),
    ModerationRule(id="4", text="No spam or unsolicited advertising."),
]


@pytest.fixture
def event_logger(tmp_path):
    return EventLogger(log_path=tmp_path / "events.jsonl")


@pytest.fixture
def pipeline(event_logger):
    return ScoringPipeline(snapshots=SnapshotStore(), event_logger=event_logger)


@pytest.fixture
def degraded_pipeline(tmp_path, event_logger):
    snapshots = SnapshotStore(
        federation_stats_file=tmp_path / "missing-stats.json",
        trusted_file=tmp_path / "missing-trusted.json",
        problematic_file=tmp_path / "missing-problematic.json",
    )
    return ScoringPipeline(snapshots=snapshots, event_logger=event_logger)


@pytest.fixture
def client(pipeline):
    return TestClient(create_app(pipeline))


def healthy_facts(**kwargs):
    values = dict(
        domain="social.example",
        rules=RULES,
        reachable=True,
        status_source="direct",
        peer_count=1200,
        blocked_instances=["spam-farm.example"],
        metadata=InstanceMetadata(has_node_info=True, user_count=800, open_registrations=False),
    )
    values.update(kwargs)
    return InstanceFacts(**values)


def event_ids(logger):
    return [event.event_id for event in logger.read_events()]


class TestScoringPipeline:
    """Test report assembly and event logging."""

    def test_score_is_side_effect_free(self, pipeline, event_logger):
        """Test synchronous scoring writes no events."""
        report = pipeline.score(healthy_facts())

        assert report.domain == "social.example"
        assert report.safety_score.overall >= 80
        assert report.score_label == "Excellent"
        assert report.network_health.details.reputation_level == "trusted"
        assert not report.network_health.degraded
        assert event_logger.get_event_count() == 0

    def test_score_is_deterministic(self, pipeline):
        """Test identical facts give identical scores."""
        first = pipeline.score(healthy_facts())
        second = pipeline.score(healthy_facts())

        assert first.safety_score == second.safety_score
        assert first.policy_analysis == second.policy_analysis

    def test_evaluate_logs_events(self, pipeline, event_logger):
        """Test startup, policy and score events in order."""
        asyncio.run(pipeline.evaluate(healthy_facts()))

        # Most recent first
        assert event_ids(event_logger) == [1001, 2001, 4001]

    def test_startup_logged_once(self, pipeline, event_logger):
        """Test a second evaluation does not repeat the startup event."""
        asyncio.run(pipeline.evaluate(healthy_facts()))
        asyncio.run(pipeline.evaluate(healthy_facts(domain="queer.example")))

        assert event_ids(event_logger).count(4001) == 1

    def test_low_score_and_critical_hit(self, pipeline, event_logger):
        """Test warning and error events for a blocked, unreachable instance."""
        facts = InstanceFacts(
            domain="harassment-hub.example",
            blocklist_matches=[BlocklistMatch(list_name="shared-block", severity="critical")],
        )
        report = asyncio.run(pipeline.evaluate(facts))

        assert report.safety_score.overall < 40
        ids = event_ids(event_logger)
        assert 1002 in ids
        assert 1003 in ids
        assert 1001 not in ids

        errors = event_logger.read_events(level=EventLevel.ERROR)
        assert [e.domain for e in errors] == ["harassment-hub.example"]

    def test_degraded_snapshots(self, degraded_pipeline, event_logger):
        """Test missing snapshots produce defaults and a startup warning."""
        report = asyncio.run(degraded_pipeline.evaluate(healthy_facts()))

        assert report.network_health.degraded
        assert report.network_health.total_score == 10
        assert report.network_health.flags == [DEGRADED_FLAG]
        assert 4002 in event_ids(event_logger)

    def test_analyze_policies(self, pipeline, event_logger):
        """Test standalone policy analysis accepts plain strings."""
        result = asyncio.run(pipeline.analyze_policies(["No harassment."], domain="x.example"))

        assert result.raw_score > 0
        assert event_logger.read_events(domain="x.example")[0].event_id == 2001

    def test_event_summary(self, pipeline, event_logger):
        """Test event counts by id and level."""
        asyncio.run(pipeline.evaluate(healthy_facts()))
        summary = event_logger.summarize()

        assert summary["total"] == 3
        assert summary["by_id"][1001] == 1
        assert summary["by_level"]["Information"] == 3

    def test_malformed_log_lines_skipped(self, event_logger):
        """Test a corrupt line does not break reading."""
        event_logger.log_path.write_text("not json\n\n", encoding="utf-8")
        asyncio.run(event_logger.log_system_event(event_id=4003, message="Snapshot ingested"))

        assert event_ids(event_logger) == [4003]


class TestAPI:
    """Test the HTTP surface."""

    def test_root(self, client):
        """Test the index endpoint."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["score"] == "/api/score"

    def test_score(self, client):
        """Test scoring from a JSON body."""
        response = client.post("/api/score", json=healthy_facts().model_dump(mode="json"))

        assert response.status_code == 200
        body = response.json()
        assert body["domain"] == "social.example"
        assert 0 <= body["safety_score"]["overall"] <= 100
        assert body["policy_analysis"]["covenant_alignment"]["has_racism_policy"] is True

    def test_score_rejects_invalid_facts(self, client):
        """Test validation errors become 422."""
        response = client.post("/api/score", json={"domain": "x.example", "peer_count": -1})
        assert response.status_code == 422

    def test_analyze_policies(self, client):
        """Test standalone policy analysis."""
        response = client.post(
            "/api/policies/analyze",
            params={"domain": "x.example"},
            json={"rules": [{"id": "1", "text": "Harassment is banned."}]},
        )

        assert response.status_code == 200
        assert "harassment" in response.json()["categories_covered"]

    def test_analyze_empty_rules(self, client):
        """Test no rules is a valid request with zero confidence."""
        response = client.post("/api/policies/analyze", json={"rules": []})

        assert response.status_code == 200
        assert response.json()["confidence"] == 0

    def test_events(self, client):
        """Test events are returned most recent first."""
        client.post("/api/score", json=healthy_facts().model_dump(mode="json"))
        response = client.get("/api/events", params={"limit": 2})

        assert response.status_code == 200
        assert [e["event_id"] for e in response.json()["events"]] == [1001, 2001]

    def test_events_unknown_level(self, client):
        """Test an invalid level filter is a client error."""
        response = client.get("/api/events", params={"level": "Verbose"})
        assert response.status_code == 400

    def test_status(self, client):
        """Test the health check with bundled snapshots."""
        response = client.get("/api/status")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["pattern_count"] == 29
        assert body["pattern_diagnostics"] == 0

    def test_status_degraded(self, degraded_pipeline):
        """Test the health check reports missing snapshots."""
        response = TestClient(create_app(degraded_pipeline)).get("/api/status")

        assert response.json()["status"] == "degraded"
        assert response.json()["percentiles_loaded"] is False
