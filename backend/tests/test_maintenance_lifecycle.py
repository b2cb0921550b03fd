"""Service tests for the maintenance proposal lifecycle."""

from __future__ import annotations

import copy
import json
import os
import unittest

from sqlalchemy import create_engine, delete, event, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from toolwright.config import get_settings
from toolwright.maintenance.errors import (
    InvalidMaintenanceInputError,
    InvalidProposalTransitionError,
    ProposalConflictError,
    ProposalNotFoundError,
    RevertError,
    SchemaApplicationError,
)
from toolwright.models.action import Action
from toolwright.models.agentic_tool import AgenticTool
from toolwright.models.base import Base
from toolwright.models.composite_tool import CompositeTool, CompositeToolOperation
from toolwright.models.drift_report import DriftReport
from toolwright.models.integration import Integration
from toolwright.models.maintenance_proposal import MaintenanceProposal
from toolwright.models.scrape_job import ScrapeJob
from toolwright.models.validation_failure import ValidationFailure
from toolwright.schemas.maintenance import ListProposalsQuery
from toolwright.services.maintenance import (
    approve_proposal,
    batch_approve_by_integration,
    create_proposal,
    expire_stale_proposals,
    generate_proposals_for_integration,
    get_maintenance_config,
    get_proposal,
    get_proposal_summary,
    list_proposals,
    reject_proposal,
    revert_proposal,
    to_proposal_read,
    update_maintenance_config,
)
from toolwright.services.rescrape import request_action_rescrape
from toolwright.services.tool_descriptions import TemplateToolDescriptionGenerator

TENANT_ID = "tenant-lifecycle"

INPUT_SCHEMA = {
    "type": "object",
    "properties": {"project_id": {"type": "string"}},
    "required": ["project_id"],
}

OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "status": {"type": "string", "enum": ["open", "closed"]},
        "assignee": {"type": "string"},
        "title": {"type": "string"},
    },
    "required": ["status", "title"],
}


class _RecordingRescrapeTrigger:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    def submit(self, db, *, tenant_id, action_id, urls, wishlist) -> None:  # noqa: ANN001
        _ = db
        self.calls.append({"tenant_id": tenant_id, "action_id": action_id, "urls": urls, "wishlist": wishlist})


def _fail_commit(session) -> None:  # noqa: ANN001
    raise RuntimeError("database unavailable")


class MaintenanceLifecycleTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autoflush=False, autocommit=False, future=True)
        Base.metadata.create_all(cls.engine)

    @classmethod
    def tearDownClass(cls) -> None:
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def setUp(self) -> None:
        self.db: Session = self.SessionLocal()
        self._reset_tables()
        self.generator = TemplateToolDescriptionGenerator()
        self.integration = self._add_integration()
        self.action = self._add_action(self.integration, "list-issues")
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()

    def test_create_proposal_snapshots_schemas_and_records_changes(self) -> None:
        enum_drift = self._add_drift(self.action, "invalid_enum_value", "status", received="archived", count=3)
        null_drift = self._add_drift(
            self.action, "type_mismatch", "assignee", severity="warning", received="null", count=7
        )
        self.db.commit()

        proposal = create_proposal(self.db, TENANT_ID, self.action.id)

        assert proposal is not None
        self.assertEqual("pending", proposal.status)
        self.assertEqual("warning", proposal.severity)
        self.assertEqual("inference", proposal.source)
        self.assertEqual(OUTPUT_SCHEMA, proposal.current_output_schema_json)
        self.assertEqual(INPUT_SCHEMA, proposal.current_input_schema_json)
        self.assertIsNone(proposal.proposed_input_schema_json)
        self.assertEqual(
            ["field_made_nullable", "enum_value_added"],
            [change["change_type"] for change in proposal.changes_json],
        )
        self.assertEqual({enum_drift.id, null_drift.id}, set(proposal.drift_report_ids_json))
        self.assertEqual([{"tool_type": "action", "tool_id": self.action.id, "tool_name": "list-issues"}], proposal.affected_tools_json)
        self.assertIsNone(proposal.description_suggestions_json)

        read = to_proposal_read(proposal)
        self.assertEqual("archived", read.changes[1].after_value)
        self.assertEqual("list-issues", read.affected_tools[0].tool_name)

    def test_create_returns_none_when_no_change_is_inferred(self) -> None:
        self._add_drift(self.action, "invalid_enum_value", "status", received="archived", with_failure=False)
        self.db.commit()

        self.assertIsNone(create_proposal(self.db, TENANT_ID, self.action.id))
        self.assertEqual(0, self._count(MaintenanceProposal))

    def test_second_pending_proposal_for_action_conflicts(self) -> None:
        first = self._create_enum_proposal()

        self._add_drift(self.action, "unexpected_field", "labels", received="array")
        self.db.commit()
        with self.assertRaises(ProposalConflictError):
            create_proposal(self.db, TENANT_ID, self.action.id)

        self.assertEqual(1, self._count(MaintenanceProposal))
        untouched = self.db.get(MaintenanceProposal, first.id)
        assert untouched is not None
        self.assertEqual("pending", untouched.status)
        self.assertEqual(1, len(untouched.changes_json))

    def test_partial_unique_index_rejects_two_pending_rows(self) -> None:
        for _ in range(2):
            self.db.add(
                MaintenanceProposal(
                    integration_id=self.integration.id,
                    tenant_id=TENANT_ID,
                    action_id=self.action.id,
                    severity="info",
                    current_input_schema_json={},
                    current_output_schema_json={},
                )
            )
        with self.assertRaises(IntegrityError):
            self.db.commit()
        self.db.rollback()

    def test_approve_applies_schema_and_resolves_referenced_drift(self) -> None:
        proposal = self._create_enum_proposal()
        later_drift = self._add_drift(self.action, "unexpected_field", "labels", received="array")
        self.db.commit()

        approved = approve_proposal(self.db, TENANT_ID, proposal.id, generator=self.generator)

        self.assertEqual("approved", approved.status)
        self.assertIsNotNone(approved.approved_at)
        self.assertIsNotNone(approved.applied_at)
        action = self.db.get(Action, self.action.id)
        assert action is not None
        self.assertEqual(["open", "closed", "archived"], action.output_schema_json["properties"]["status"]["enum"])
        self.assertEqual(INPUT_SCHEMA, action.input_schema_json)
        for report_id in proposal.drift_report_ids_json:
            report = self.db.get(DriftReport, report_id)
            assert report is not None
            self.assertEqual("resolved", report.status)
            self.assertIsNotNone(report.resolved_at)
        later = self.db.get(DriftReport, later_drift.id)
        assert later is not None
        self.assertEqual("detected", later.status)
        self.assertIsInstance(approved.description_suggestions_json, list)

    def test_approve_without_suggestions_leaves_suggestions_unset(self) -> None:
        proposal = self._create_enum_proposal()

        approved = approve_proposal(self.db, TENANT_ID, proposal.id, generate_suggestions=False)

        self.assertEqual("approved", approved.status)
        self.assertIsNone(approved.description_suggestions_json)

    def test_failed_approval_commit_leaves_everything_unchanged(self) -> None:
        proposal = self._create_enum_proposal()
        original_output = copy.deepcopy(self.action.output_schema_json)

        event.listen(self.db, "before_commit", _fail_commit)
        try:
            with self.assertRaises(SchemaApplicationError) as ctx:
                approve_proposal(self.db, TENANT_ID, proposal.id, generator=self.generator)
        finally:
            event.remove(self.db, "before_commit", _fail_commit)

        self.assertIn(proposal.id, str(ctx.exception))
        self.assertIn("database unavailable", str(ctx.exception))
        action = self.db.get(Action, self.action.id)
        assert action is not None
        self.assertEqual(original_output, action.output_schema_json)
        for report_id in proposal.drift_report_ids_json:
            report = self.db.get(DriftReport, report_id)
            assert report is not None
            self.assertEqual("detected", report.status)
            self.assertIsNone(report.resolved_at)
        reloaded = get_proposal(self.db, TENANT_ID, proposal.id)
        self.assertEqual("pending", reloaded.status)
        self.assertIsNone(reloaded.approved_at)

    def test_cascade_failure_does_not_undo_approval(self) -> None:
        proposal = self._create_enum_proposal()

        class _BrokenGenerator(TemplateToolDescriptionGenerator):
            def describe_action(self, action, *, integration_name):  # noqa: ANN001
                raise RuntimeError("generator offline")

            def generate_composite_descriptions(self, payload):  # noqa: ANN001
                raise RuntimeError("generator offline")

        approved = approve_proposal(self.db, TENANT_ID, proposal.id, generator=_BrokenGenerator())

        self.assertEqual("approved", approved.status)
        action = self.db.get(Action, self.action.id)
        assert action is not None
        self.assertIn("archived", action.output_schema_json["properties"]["status"]["enum"])

    def test_approving_twice_is_an_invalid_transition(self) -> None:
        proposal = self._create_enum_proposal()
        approve_proposal(self.db, TENANT_ID, proposal.id, generate_suggestions=False)

        with self.assertRaises(InvalidProposalTransitionError) as ctx:
            approve_proposal(self.db, TENANT_ID, proposal.id)
        self.assertEqual("approved", ctx.exception.current_status)
        self.assertEqual("approved", ctx.exception.requested)

    def test_reject_is_status_only(self) -> None:
        proposal = self._create_enum_proposal()

        rejected = reject_proposal(self.db, TENANT_ID, proposal.id)

        self.assertEqual("rejected", rejected.status)
        self.assertIsNotNone(rejected.rejected_at)
        action = self.db.get(Action, self.action.id)
        assert action is not None
        self.assertEqual(OUTPUT_SCHEMA, action.output_schema_json)
        for report_id in rejected.drift_report_ids_json:
            report = self.db.get(DriftReport, report_id)
            assert report is not None
            self.assertEqual("detected", report.status)

        with self.assertRaises(InvalidProposalTransitionError):
            approve_proposal(self.db, TENANT_ID, proposal.id)
        with self.assertRaises(InvalidProposalTransitionError):
            revert_proposal(self.db, TENANT_ID, proposal.id)
        with self.assertRaises(InvalidProposalTransitionError):
            reject_proposal(self.db, TENANT_ID, proposal.id)

    def test_revert_requires_approved_proposal(self) -> None:
        proposal = self._create_enum_proposal()

        with self.assertRaises(InvalidProposalTransitionError) as ctx:
            revert_proposal(self.db, TENANT_ID, proposal.id)
        self.assertEqual("pending", ctx.exception.current_status)
        self.assertEqual(409, ctx.exception.status_code)

    def test_revert_restores_exact_schemas_and_reopens_only_referenced_drift(self) -> None:
        input_before = json.dumps(self.action.input_schema_json)
        output_before = json.dumps(self.action.output_schema_json)
        self._add_drift(self.action, "invalid_enum_value", "status", received="archived", count=3)
        self._add_drift(self.action, "type_mismatch", "assignee", severity="warning", received="null", count=5)
        self._add_drift(self.action, "missing_required_field", "title", count=2)
        self._add_drift(
            self.action, "missing_required_field", "workspace_id", direction="input", severity="breaking", count=9
        )
        self.db.commit()
        proposal = create_proposal(self.db, TENANT_ID, self.action.id)
        assert proposal is not None
        self.assertEqual(4, len(proposal.changes_json))

        other_action = self._add_action(self.integration, "create-issue")
        unrelated_open = self._add_drift(other_action, "unexpected_field", "labels", received="array")
        self.db.commit()

        approve_proposal(self.db, TENANT_ID, proposal.id, generate_suggestions=False)
        action = self.db.get(Action, self.action.id)
        assert action is not None
        self.assertNotEqual(output_before, json.dumps(action.output_schema_json))
        self.assertIn("workspace_id", action.input_schema_json["required"])

        stray_resolved = self._add_drift(self.action, "unexpected_field", "etag", status="resolved")
        self.db.commit()

        reverted = revert_proposal(self.db, TENANT_ID, proposal.id)

        self.assertEqual("reverted", reverted.status)
        self.assertIsNotNone(reverted.reverted_at)
        action = self.db.get(Action, self.action.id)
        assert action is not None
        self.assertEqual(input_before, json.dumps(action.input_schema_json))
        self.assertEqual(output_before, json.dumps(action.output_schema_json))
        for report_id in reverted.drift_report_ids_json:
            report = self.db.get(DriftReport, report_id)
            assert report is not None
            self.assertEqual("detected", report.status)
            self.assertIsNone(report.resolved_at)
        unrelated = self.db.get(DriftReport, unrelated_open.id)
        stray = self.db.get(DriftReport, stray_resolved.id)
        assert unrelated is not None and stray is not None
        self.assertEqual("detected", unrelated.status)
        self.assertEqual("resolved", stray.status)

        with self.assertRaises(InvalidProposalTransitionError):
            revert_proposal(self.db, TENANT_ID, proposal.id)

    def test_failed_revert_commit_leaves_proposal_approved(self) -> None:
        proposal = self._create_enum_proposal()
        approve_proposal(self.db, TENANT_ID, proposal.id, generate_suggestions=False)

        event.listen(self.db, "before_commit", _fail_commit)
        try:
            with self.assertRaises(RevertError):
                revert_proposal(self.db, TENANT_ID, proposal.id)
        finally:
            event.remove(self.db, "before_commit", _fail_commit)

        reloaded = get_proposal(self.db, TENANT_ID, proposal.id)
        self.assertEqual("approved", reloaded.status)
        action = self.db.get(Action, self.action.id)
        assert action is not None
        self.assertIn("archived", action.output_schema_json["properties"]["status"]["enum"])

    def test_get_proposal_is_tenant_scoped(self) -> None:
        proposal = self._create_enum_proposal()

        with self.assertRaises(ProposalNotFoundError):
            get_proposal(self.db, "another-tenant", proposal.id)
        with self.assertRaises(ProposalNotFoundError):
            reject_proposal(self.db, TENANT_ID, "missing")

    def test_list_and_summary(self) -> None:
        first = self._create_enum_proposal()
        second_action = self._add_action(self.integration, "create-issue")
        self._add_drift(second_action, "type_mismatch", "assignee", severity="breaking", received="integer")
        self.db.commit()
        second = create_proposal(self.db, TENANT_ID, second_action.id)
        assert second is not None
        reject_proposal(self.db, TENANT_ID, second.id)

        everything = list_proposals(self.db, TENANT_ID, self.integration.id)
        pending = list_proposals(self.db, TENANT_ID, self.integration.id, {"status": "pending"})
        breaking = list_proposals(self.db, TENANT_ID, self.integration.id, ListProposalsQuery(severity="breaking"))
        paged = list_proposals(self.db, TENANT_ID, self.integration.id, {"limit": 1, "offset": 1})

        self.assertEqual(2, everything.total)
        self.assertEqual({first.id, second.id}, {item.id for item in everything.items})
        self.assertEqual([first.id], [item.id for item in pending.items])
        self.assertEqual([second.id], [item.id for item in breaking.items])
        self.assertEqual(1, len(paged.items))
        self.assertEqual(2, paged.total)
        self.assertEqual(0, list_proposals(self.db, "another-tenant", self.integration.id).total)

        summary = get_proposal_summary(self.db, TENANT_ID, self.integration.id)
        self.assertEqual((1, 1, 0, 2), (summary.pending, summary.rejected, summary.approved, summary.total))

        with self.assertRaises(InvalidMaintenanceInputError):
            list_proposals(self.db, TENANT_ID, self.integration.id, {"limit": 0})
        with self.assertRaises(InvalidMaintenanceInputError):
            list_proposals(self.db, TENANT_ID, self.integration.id, {"status": "archived"})

    def test_list_page_size_is_bounded_by_settings(self) -> None:
        self._create_enum_proposal()

        self.assertEqual(1, list_proposals(self.db, TENANT_ID, self.integration.id, {"limit": 100}).total)
        with self.assertRaises(InvalidMaintenanceInputError):
            list_proposals(self.db, TENANT_ID, self.integration.id, {"limit": 101})

        os.environ["MAINTENANCE_PROPOSAL_PAGE_LIMIT"] = "5"
        get_settings.cache_clear()
        try:
            self.assertEqual(5, list_proposals(self.db, TENANT_ID, self.integration.id, {"limit": 5}).limit)
            with self.assertRaises(InvalidMaintenanceInputError):
                list_proposals(self.db, TENANT_ID, self.integration.id, ListProposalsQuery(limit=6))
        finally:
            del os.environ["MAINTENANCE_PROPOSAL_PAGE_LIMIT"]
            get_settings.cache_clear()

    def test_batch_approve_respects_ceiling_and_isolates_failures(self) -> None:
        doomed = self._proposal_with_severity("doomed", "info")
        info = self._proposal_with_severity("info-action", "info")
        warning = self._proposal_with_severity("warning-action", "warning")
        breaking = self._proposal_with_severity("breaking-action", "breaking")
        self.db.execute(delete(Action).where(Action.id == doomed.action_id))
        self.db.commit()

        result = batch_approve_by_integration(
            self.db, TENANT_ID, self.integration.id, "warning", generator=self.generator
        )

        self.assertEqual(2, result.approved)
        self.assertEqual(1, result.failed)
        statuses = {
            proposal_id: get_proposal(self.db, TENANT_ID, proposal_id).status
            for proposal_id in (doomed.id, info.id, warning.id, breaking.id)
        }
        self.assertEqual(
            {doomed.id: "pending", info.id: "approved", warning.id: "approved", breaking.id: "pending"},
            statuses,
        )

    def test_batch_approve_without_ceiling_approves_every_severity(self) -> None:
        self._proposal_with_severity("info-action", "info")
        self._proposal_with_severity("breaking-action", "breaking")

        result = batch_approve_by_integration(self.db, TENANT_ID, self.integration.id, generator=self.generator)

        self.assertEqual(2, result.approved)
        self.assertEqual(0, result.failed)
        with self.assertRaises(InvalidMaintenanceInputError):
            batch_approve_by_integration(self.db, TENANT_ID, self.integration.id, "critical")

    def test_expiration_sweep_only_expires_fully_resolved_proposals(self) -> None:
        resolved_elsewhere = self._create_enum_proposal()
        other_action = self._add_action(self.integration, "create-issue")
        first = self._add_drift(other_action, "unexpected_field", "labels", received="array")
        self._add_drift(other_action, "type_mismatch", "assignee", received="null", severity="warning")
        self.db.commit()
        partially_open = create_proposal(self.db, TENANT_ID, other_action.id)
        assert partially_open is not None
        third_action = self._add_action(self.integration, "delete-issue")
        gone = self._add_drift(third_action, "unexpected_field", "etag", received="string")
        self.db.commit()
        deleted_drift = create_proposal(self.db, TENANT_ID, third_action.id)
        assert deleted_drift is not None

        for report_id in resolved_elsewhere.drift_report_ids_json:
            report = self.db.get(DriftReport, report_id)
            assert report is not None
            report.status = "resolved"
        resolved_first = self.db.get(DriftReport, first.id)
        assert resolved_first is not None
        resolved_first.status = "resolved"
        self.db.execute(delete(DriftReport).where(DriftReport.id == gone.id))
        self.db.commit()

        expired = expire_stale_proposals(self.db, integration_id=self.integration.id)

        self.assertEqual(2, expired)
        self.assertEqual("expired", get_proposal(self.db, TENANT_ID, resolved_elsewhere.id).status)
        self.assertIsNotNone(get_proposal(self.db, TENANT_ID, resolved_elsewhere.id).expired_at)
        self.assertEqual("pending", get_proposal(self.db, TENANT_ID, partially_open.id).status)
        self.assertEqual("expired", get_proposal(self.db, TENANT_ID, deleted_drift.id).status)
        self.assertEqual(0, expire_stale_proposals(self.db))

    def test_generation_end_to_end_for_new_enum_value(self) -> None:
        self._add_drift(self.action, "invalid_enum_value", "status", received="archived", count=3)
        self.db.commit()

        result = generate_proposals_for_integration(self.db, self.integration.id, TENANT_ID)

        self.assertEqual(1, result.proposals_created)
        self.assertEqual(1, result.actions_affected)
        proposals = list(self.db.scalars(select(MaintenanceProposal)))
        self.assertEqual(1, len(proposals))
        proposal = proposals[0]
        self.assertEqual("info", proposal.severity)
        self.assertEqual(1, len(proposal.changes_json))
        self.assertEqual("enum_value_added", proposal.changes_json[0]["change_type"])
        self.assertEqual("archived", proposal.changes_json[0]["after_value"])

        again = generate_proposals_for_integration(self.db, self.integration.id, TENANT_ID)
        self.assertEqual(0, again.proposals_created)
        self.assertEqual(1, self._count(MaintenanceProposal))

    def test_generation_skips_actions_without_inferable_changes(self) -> None:
        other_action = self._add_action(self.integration, "create-issue")
        self._add_drift(other_action, "unexpected_field", "labels", received="array", with_failure=False)
        self._add_drift(self.action, "invalid_enum_value", "status", received="archived")
        self.db.commit()

        result = generate_proposals_for_integration(self.db, self.integration.id, TENANT_ID)

        self.assertEqual(1, result.proposals_created)
        self.assertEqual(2, result.actions_affected)

    def test_generation_expires_stale_proposals_first(self) -> None:
        proposal = self._create_enum_proposal()
        for report_id in proposal.drift_report_ids_json:
            report = self.db.get(DriftReport, report_id)
            assert report is not None
            report.status = "resolved"
        self.db.commit()

        result = generate_proposals_for_integration(self.db, self.integration.id, TENANT_ID)

        self.assertEqual(1, result.expired_count)
        self.assertEqual(0, result.proposals_created)

    def test_breaking_proposal_triggers_rescrape_when_configured(self) -> None:
        self.integration.maintenance_config_json = {"rescrape_on_breaking": True}
        self.action.metadata_json = {"source_urls": ["https://docs.example.com/issues"]}
        self._add_drift(self.action, "type_mismatch", "assignee", severity="breaking", received="integer")
        quiet_action = self._add_action(self.integration, "create-issue")
        quiet_action.metadata_json = {"source_urls": ["https://docs.example.com/create"]}
        self._add_drift(quiet_action, "unexpected_field", "labels", severity="info", received="array")
        self.db.commit()
        trigger = _RecordingRescrapeTrigger()

        result = generate_proposals_for_integration(
            self.db, self.integration.id, TENANT_ID, rescrape_trigger=trigger
        )

        self.assertEqual(2, result.proposals_created)
        self.assertEqual(
            [
                {
                    "tenant_id": TENANT_ID,
                    "action_id": self.action.id,
                    "urls": ["https://docs.example.com/issues"],
                    "wishlist": ["list-issues"],
                }
            ],
            trigger.calls,
        )

    def test_breaking_proposal_without_rescrape_config_does_not_trigger(self) -> None:
        self.action.metadata_json = {"source_urls": ["https://docs.example.com/issues"]}
        self._add_drift(self.action, "type_mismatch", "assignee", severity="breaking", received="integer")
        self.db.commit()
        trigger = _RecordingRescrapeTrigger()

        generate_proposals_for_integration(self.db, self.integration.id, TENANT_ID, rescrape_trigger=trigger)

        self.assertEqual([], trigger.calls)

    def test_default_rescrape_trigger_queues_scrape_job(self) -> None:
        self.integration.maintenance_config_json = {"enabled": True, "rescrape_on_breaking": True}
        self.action.metadata_json = {"source_urls": ["https://docs.example.com/issues"]}
        self._add_drift(self.action, "type_mismatch", "assignee", severity="breaking", received="integer")
        self.db.commit()

        generate_proposals_for_integration(self.db, self.integration.id, TENANT_ID)

        job = self.db.scalar(select(ScrapeJob))
        assert job is not None
        self.assertEqual(self.action.id, job.action_id)
        self.assertEqual(["https://docs.example.com/issues"], job.specific_urls_json)
        self.assertEqual(["list-issues"], job.wishlist_json)
        self.assertEqual("pending", job.status)

    def test_manual_rescrape_request(self) -> None:
        self.assertFalse(request_action_rescrape(self.db, TENANT_ID, self.action.id))

        self.action.metadata_json = {"source_urls": ["https://docs.example.com/issues", ""]}
        self.db.commit()
        self.assertTrue(request_action_rescrape(self.db, TENANT_ID, self.action.id))
        job = self.db.scalar(select(ScrapeJob))
        assert job is not None
        self.assertEqual(["https://docs.example.com/issues"], job.specific_urls_json)

        with self.assertRaises(InvalidMaintenanceInputError) as ctx:
            request_action_rescrape(self.db, "another-tenant", self.action.id)
        self.assertEqual(404, ctx.exception.status_code)

    def test_maintenance_config_defaults_and_partial_update(self) -> None:
        defaults = get_maintenance_config(self.db, TENANT_ID, self.integration.id)
        self.assertEqual((True, False, False), (defaults.enabled, defaults.auto_approve_info_level, defaults.rescrape_on_breaking))

        updated = update_maintenance_config(self.db, TENANT_ID, self.integration.id, {"auto_approve_info_level": True})
        self.assertTrue(updated.auto_approve_info_level)
        self.assertTrue(updated.enabled)
        stored = self.db.get(Integration, self.integration.id)
        assert stored is not None
        self.assertEqual(
            {"enabled": True, "auto_approve_info_level": True, "rescrape_on_breaking": False},
            stored.maintenance_config_json,
        )

        stored.maintenance_config_json = {"enabled": "sometimes"}
        self.db.commit()
        self.assertTrue(get_maintenance_config(self.db, TENANT_ID, self.integration.id).enabled)

        with self.assertRaises(InvalidMaintenanceInputError):
            update_maintenance_config(self.db, TENANT_ID, self.integration.id, {})
        with self.assertRaises(InvalidMaintenanceInputError) as ctx:
            get_maintenance_config(self.db, TENANT_ID, "missing-integration")
        self.assertEqual(404, ctx.exception.status_code)

    def _create_enum_proposal(self) -> MaintenanceProposal:
        self._add_drift(self.action, "invalid_enum_value", "status", received="archived", count=3)
        self.db.commit()
        proposal = create_proposal(self.db, TENANT_ID, self.action.id)
        assert proposal is not None
        return proposal

    def _proposal_with_severity(self, slug: str, severity: str) -> MaintenanceProposal:
        action = self._add_action(self.integration, slug)
        self._add_drift(action, "unexpected_field", "labels", severity=severity, received="array")
        self.db.commit()
        proposal = create_proposal(self.db, TENANT_ID, action.id)
        assert proposal is not None
        return proposal

    def _add_integration(self) -> Integration:
        integration = Integration(tenant_id=TENANT_ID, name="Issue Tracker", slug="issue-tracker")
        self.db.add(integration)
        self.db.flush()
        return integration

    def _add_action(self, integration: Integration, slug: str) -> Action:
        action = Action(
            integration_id=integration.id,
            tenant_id=TENANT_ID,
            name=slug,
            slug=slug,
            description="Work with issues.",
            http_method="GET",
            endpoint_template=f"/{slug}",
            input_schema_json=copy.deepcopy(INPUT_SCHEMA),
            output_schema_json=copy.deepcopy(OUTPUT_SCHEMA),
            metadata_json={},
        )
        self.db.add(action)
        self.db.flush()
        return action

    def _add_drift(
        self,
        action: Action,
        issue_code: str,
        field_path: str,
        *,
        severity: str = "info",
        status: str = "detected",
        direction: str = "output",
        expected: str | None = "string",
        received: str | None = None,
        count: int = 1,
        with_failure: bool = True,
    ) -> DriftReport:
        report = DriftReport(
            integration_id=action.integration_id,
            tenant_id=TENANT_ID,
            action_id=action.id,
            fingerprint=f"{issue_code}:{field_path}",
            issue_code=issue_code,
            severity=severity,
            status=status,
            field_path=field_path,
            expected_type=expected,
            current_type=received,
            failure_count=count,
        )
        self.db.add(report)
        if with_failure:
            self.db.add(
                ValidationFailure(
                    integration_id=action.integration_id,
                    tenant_id=TENANT_ID,
                    action_id=action.id,
                    direction=direction,
                    issue_code=issue_code,
                    field_path=field_path,
                    expected_type=expected,
                    received_type=received,
                    failure_count=count,
                )
            )
        self.db.flush()
        return report

    def _count(self, model) -> int:  # noqa: ANN001
        return len(list(self.db.scalars(select(model))))

    def _reset_tables(self) -> None:
        self.db.execute(delete(ScrapeJob))
        self.db.execute(delete(MaintenanceProposal))
        self.db.execute(delete(ValidationFailure))
        self.db.execute(delete(DriftReport))
        self.db.execute(delete(CompositeToolOperation))
        self.db.execute(delete(CompositeTool))
        self.db.execute(delete(AgenticTool))
        self.db.execute(delete(Action))
        self.db.execute(delete(Integration))
        self.db.commit()


if __name__ == "__main__":
    unittest.main()
